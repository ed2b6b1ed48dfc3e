from pydantic import BaseModel
from typing import Optional, Dict, Any


class GraphRequest(BaseModel):
    """A graph document, optionally with budget overrides"""
    graph: Dict[str, Any]
    budgets: Optional[Dict[str, Any]] = None  # {"maxNodes": 10, ...}


class DriftRequest(BaseModel):
    graph: Dict[str, Any]  # Current graph
    snapshot: Optional[Dict[str, Any]] = None  # Previous {graph, contentHash, tier}
    tier: Optional[str] = None  # Overrides the snapshot's tier


class ParseRequest(BaseModel):
    source: str  # Flowchart text, fenced or not
    normalize: bool = True
