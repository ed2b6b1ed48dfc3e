import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from mermaid_guard.compiler.canonical import content_hash
from mermaid_guard.compiler.loader import load_graph, load_snapshot
from mermaid_guard.compiler.render_mermaid import render_mermaid
from mermaid_guard.drift.drift_meter import DriftMeter, DriftThresholds
from mermaid_guard.dsl.mermaid import normalize_mermaid, parse_to_ast
from mermaid_guard.ir.errors import MermaidGuardError
from mermaid_guard.ir.graph import ALLOWED_TIERS
from mermaid_guard.schemas import DriftRequest, GraphRequest, ParseRequest
from mermaid_guard.validation.graph_validator import validate
from mermaid_guard.validation.profile import default_profile

logger = logging.getLogger(__name__)

router = APIRouter()


def _unprocessable(exc: MermaidGuardError) -> HTTPException:
    logger.info("rejected document: %s", exc.message)
    return HTTPException(status_code=422, detail=exc.to_dict())


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/profile")
def get_profile():
    """Active safety profile and drift thresholds"""
    return {
        "profile": default_profile().to_dict(),
        "drift": asdict(DriftThresholds.from_config()),
    }


# ============================================================
# GRAPH ENDPOINTS
# ============================================================

@router.post("/validate")
def validate_graph(request: GraphRequest):
    """
    Validate a graph against the active safety profile.

    Graph problems (budgets, dangling edges, ...) come back as errors with
    status "invalid"; only documents that are not graphs at all get a 422.
    """
    try:
        loaded = load_graph(request.graph, request.budgets)
    except MermaidGuardError as exc:
        raise _unprocessable(exc)

    profile = default_profile().with_budgets(loaded.budgets)
    result = validate(loaded.graph, profile)
    return {
        "status": "success" if result.ok else "invalid",
        "summary": result.get_summary(),
        "profile": profile.profile_name,
        "contentHash": content_hash(loaded.graph),
        **result.to_dict(),
    }


@router.post("/hash")
def hash_graph(request: GraphRequest):
    try:
        graph = load_graph(request.graph).graph
    except MermaidGuardError as exc:
        raise _unprocessable(exc)
    return {"contentHash": content_hash(graph)}


@router.post("/drift")
def measure_drift(request: DriftRequest):
    """Drift of `graph` against `snapshot`; without a snapshot, the initial anchor report."""
    if request.tier is not None and request.tier not in ALLOWED_TIERS:
        raise HTTPException(
            status_code=422,
            detail={"code": "INVALID_TIER", "message": f"Unknown tier '{request.tier}'",
                    "details": {"allowed": sorted(ALLOWED_TIERS)}},
        )

    try:
        current = load_graph(request.graph).graph
        prior = load_snapshot(request.snapshot) if request.snapshot is not None else None
    except MermaidGuardError as exc:
        raise _unprocessable(exc)

    if prior is not None and request.tier is not None:
        prior = prior.model_copy(update={"tier": request.tier})

    report = DriftMeter(DriftThresholds.from_config()).analyze(prior, current)
    return report.to_dict()


# ============================================================
# TEXT ENDPOINTS
# ============================================================

@router.post("/render")
def render_graph(request: GraphRequest):
    try:
        graph = load_graph(request.graph).graph
    except MermaidGuardError as exc:
        raise _unprocessable(exc)

    source = render_mermaid(graph)
    return {
        "mermaid": source,
        "diagram": {"type": "mermaid", "source": source},
    }


@router.post("/parse")
def parse_source(request: ParseRequest):
    text = normalize_mermaid(request.source) if request.normalize else request.source
    profile = default_profile()
    try:
        graph = parse_to_ast(
            text,
            max_nodes=profile.max_nodes,
            max_edges=profile.max_edges,
            max_subgraphs=profile.max_subgraphs,
        )
    except MermaidGuardError as exc:
        raise _unprocessable(exc)
    return {"graph": graph.to_document(), "contentHash": content_hash(graph)}
