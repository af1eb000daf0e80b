# app/schemas/common.py
from pydantic import BaseModel


class ActionResult(BaseModel):
    """
    Envelope returned by every mutating endpoint.

      {"success": true, ...}  or  {"success": false, "error": "<message>"}
    """

    success: bool = True
    error: str | None = None
