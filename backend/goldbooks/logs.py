import json
import sys
from datetime import datetime, timezone


def json_log(level: str, event: str, **fields):
    rec = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event, **fields}
    print(json.dumps(rec, default=str, ensure_ascii=False), file=sys.stderr)
