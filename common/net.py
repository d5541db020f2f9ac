# common/net.py
import json
import logging
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

# JSON-object message helpers for the WebSocket transport.

def encode_message(obj: Dict[str, Any]) -> str:
    # allow_nan=False: browsers' JSON.parse rejects NaN/Infinity
    return json.dumps(obj, separators=(",", ":"), allow_nan=False)

def decode_message(data: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """Decode one frame; None when it is not a UTF-8 JSON object."""
    try:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        msg = json.loads(data, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        log.debug("[net] dropped malformed frame: %s", exc)
        return None
    if not isinstance(msg, dict):
        return None
    return msg

def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite constant {name}")
