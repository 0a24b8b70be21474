from typing import Any, Dict


def success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}
