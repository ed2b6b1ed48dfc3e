import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from mermaid_guard.compiler.builder import GraphBuilder
from mermaid_guard.compiler.render_mermaid import SHAPE_DELIMITERS
from mermaid_guard.ir.errors import MermaidSyntaxError
from mermaid_guard.ir.graph import Graph

MERMAID_DIRECTIVE_RE = re.compile(r"^(?:flowchart|graph)\s+(TD|TB|LR|BT|RL)$", re.IGNORECASE)
HEADER_WORDS = ("flowchart", "graph")

NODE_ID = r"[A-Za-z0-9_][A-Za-z0-9_\-]*"
NODE_TOKEN_RE = re.compile(rf"^(?P<id>{NODE_ID})(?P<body>.*)$")
SUBGRAPH_RE = re.compile(rf"^subgraph\s+(?P<id>{NODE_ID})\s*(?P<title>.*)$")
DIRECTION_LINE_RE = re.compile(r"^direction\s+(TD|TB|LR|BT|RL)$", re.IGNORECASE)

EDGE_TYPES = {"-->": "arrow", "-.->": "dotted", "==>": "thick"}
_OPENERS = "([{"
_CLOSERS = ")]}"

# Longest opener first so "(((" wins over "((" and "(".
SHAPES_LONGEST_FIRST = sorted(
    SHAPE_DELIMITERS.items(), key=lambda item: -len(item[1][0])
)


def unescape_label(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1].replace("#quot;", '"')
    return text.replace("<br/>", "\n")


def parse_node_token(token: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Split `A`, `A[label]`, `A(label)`, `A{label}`, ... into (id, label, shape).

    label and shape are None for a bare reference.
    """
    match = NODE_TOKEN_RE.match(token.strip())
    if not match:
        raise ValueError(f"invalid node token '{token}'")
    node_id, body = match.group("id"), match.group("body").strip()
    if not body:
        return node_id, None, None
    for shape, (open_, close) in SHAPES_LONGEST_FIRST:
        if (
            body.startswith(open_)
            and body.endswith(close)
            and len(body) >= len(open_) + len(close)
        ):
            return node_id, unescape_label(body[len(open_):len(body) - len(close)]), shape
    raise ValueError(f"unsupported node shape in '{token}'")


def _read_edge_label(line: str, pos: int) -> Tuple[int, Optional[str]]:
    while pos < len(line) and line[pos].isspace():
        pos += 1
    if not line.startswith("|", pos):
        return pos, None
    end = pos + 1
    if line.startswith('"', end):
        end = line.find('"', end + 1)
        if end == -1:
            raise ValueError(f"unterminated quote in '{line}'")
        end += 1
    close = line.find("|", end)
    if close == -1:
        raise ValueError(f"unterminated edge label in '{line}'")
    return close + 1, line[pos + 1:close]


def split_edge_chain(line: str) -> List[Optional[str]]:
    """Split `A[x] -->|l| B --> C` into [node, op, label, node, op, label, node].

    Operators inside quotes or shape delimiters belong to the label. label is
    None where the edge has none; a line without edges comes back as [line].
    """
    parts: List[Optional[str]] = []
    token_start = pos = depth = 0
    quoted = False
    while pos < len(line):
        ch = line[pos]
        if ch == '"':
            quoted = not quoted
        elif quoted:
            pass
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif depth == 0:
            op = next((o for o in EDGE_TYPES if line.startswith(o, pos)), None)
            if op is not None:
                parts += [line[token_start:pos].strip(), op]
                pos, label = _read_edge_label(line, pos + len(op))
                parts.append(label)
                token_start = pos
                continue
        pos += 1
    if quoted:
        raise ValueError(f"unterminated quote in '{line}'")
    parts.append(line[token_start:].strip())
    return parts


class _FlowchartParser:
    def __init__(self):
        self.direction = "TD"
        self.nodes: Dict[str, dict] = {}
        self.edges: List[dict] = []
        self.subgraphs: Dict[str, dict] = {}
        self.current_subgraph: Optional[dict] = None
        self.problems: List[str] = []

    def parse(self, text: str) -> None:
        header_seen = False
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip().rstrip(";").strip()
            if not line or line.startswith("%%") or line.startswith("```"):
                continue

            if not header_seen:
                header_seen = True
                match = MERMAID_DIRECTIVE_RE.match(line)
                if match:
                    self.direction = match.group(1).upper()
                    continue
                self.problems.append(
                    f"Line {lineno}: expected 'flowchart <TD|LR|BT|RL>' header, got '{line}'"
                )

            self._parse_line(line, lineno)

        if not header_seen:
            self.problems.append("Diagram is empty: missing 'flowchart <DIR>' header")
        if self.current_subgraph is not None:
            self.problems.append(
                f"Subgraph '{self.current_subgraph['id']}' is not closed with 'end'"
            )

    def _parse_line(self, line: str, lineno: int) -> None:
        if line == "end":
            if self.current_subgraph is None:
                self.problems.append(f"Line {lineno}: 'end' without an open subgraph")
            self.current_subgraph = None
            return

        if DIRECTION_LINE_RE.match(line):
            return

        if line == "subgraph" or line.startswith("subgraph "):
            self._open_subgraph(line, lineno)
            return

        try:
            parts = split_edge_chain(line)
        except ValueError as exc:
            self.problems.append(f"Line {lineno}: {exc}")
            return
        if len(parts) == 1:
            self._declare(line, lineno)
            return

        node_tokens = parts[0::3]
        operators = parts[1::3]
        labels = parts[2::3]
        if any(not token.strip() for token in node_tokens):
            self.problems.append(f"Line {lineno}: edge is missing an endpoint in '{line}'")
            return

        ids = [self._declare(token, lineno) for token in node_tokens]
        if any(node_id is None for node_id in ids):
            return
        for i, op in enumerate(operators):
            self.edges.append({
                "from": ids[i],
                "to": ids[i + 1],
                "type": EDGE_TYPES[op],
                "label": unescape_label(labels[i]) if labels[i] else "",
            })

    def _open_subgraph(self, line: str, lineno: int) -> None:
        match = SUBGRAPH_RE.match(line)
        if not match:
            self.problems.append(
                f"Line {lineno}: subgraph should look like 'subgraph ID Title', got '{line}'"
            )
            return
        if self.current_subgraph is not None:
            self.problems.append(f"Line {lineno}: nested subgraphs are not supported")
            return

        subgraph_id = match.group("id")
        title = match.group("title").strip()
        # "subgraph ID[Title]" is accepted as well as "subgraph ID Title"
        if title.startswith("[") and title.endswith("]"):
            title = title[1:-1]
        self.current_subgraph = {
            "id": subgraph_id,
            "title": unescape_label(title) or subgraph_id,
            "nodeIds": [],
        }
        if subgraph_id in self.subgraphs:
            self.problems.append(f"Line {lineno}: duplicate subgraph id '{subgraph_id}'")
            return
        self.subgraphs[subgraph_id] = self.current_subgraph

    def _declare(self, token: str, lineno: int) -> Optional[str]:
        try:
            node_id, label, shape = parse_node_token(token)
        except ValueError as exc:
            self.problems.append(f"Line {lineno}: {exc}")
            return None

        spec = self.nodes.get(node_id)
        if spec is None:
            spec = {"id": node_id, "label": node_id, "shape": "rect"}
            self.nodes[node_id] = spec
            if self.current_subgraph is not None:
                self.current_subgraph["nodeIds"].append(node_id)
        if shape is not None:
            # A later explicit declaration wins, as in Mermaid.
            spec["label"] = label or node_id
            spec["shape"] = shape
        return node_id


def parse_to_ast(
    text: str,
    max_nodes: int = 80,
    max_edges: int = 120,
    max_subgraphs: Optional[int] = None,
) -> Graph:
    """Parse the supported flowchart subset into a Graph.

    Syntax problems are collected across the whole text and raised together
    as MermaidSyntaxError; budget overruns surface as StructuralError from
    the builder.
    """
    parser = _FlowchartParser()
    parser.parse(text)
    if parser.problems:
        raise MermaidSyntaxError(parser.problems)

    builder = GraphBuilder(
        max_nodes=max_nodes,
        max_edges=max_edges,
        max_subgraphs=max_subgraphs,
        direction=parser.direction,
    )
    for spec in parser.nodes.values():
        builder.add_node(spec)
    for edge in parser.edges:
        builder.add_edge(edge)
    for subgraph in parser.subgraphs.values():
        builder.add_subgraph(subgraph)
    return builder.build()


# ============================================================
# Text hygiene
# ============================================================

def normalize_mermaid(code: str) -> str:
    """Strip fences, normalize line endings and put the header on its own line."""
    if not code:
        return ""

    # Remove markdown fences
    code = re.sub(r"```mermaid|```", "", code, flags=re.IGNORECASE)
    code = code.replace("\r\n", "\n").strip()

    lines = [l.rstrip() for l in code.splitlines() if l.strip()]
    if not lines:
        return ""

    tokens = lines[0].strip().split()
    if tokens[0].lower() not in HEADER_WORDS:
        return "\n".join(["flowchart TD"] + lines)

    direction = tokens[1].rstrip(";").upper() if len(tokens) > 1 else "TD"
    header = f"flowchart {direction}"
    # Tokens glued onto the header line move to their own line.
    rest = " ".join(tokens[2:])
    return "\n".join([header] + ([rest] if rest else []) + lines[1:])


def quick_validate(code: str) -> List[str]:
    """Cheap pre-parse checks. Returns a list of problems (empty when fine)."""
    if not code or not code.strip():
        return ["Diagram is empty"]

    problems = []
    lines = [l.strip() for l in code.splitlines() if l.strip()]
    if not MERMAID_DIRECTIVE_RE.match(lines[0].rstrip(";")):
        problems.append("First line must be 'flowchart TD' or similar")

    # Basic safety: no script tags or markdown fences
    if re.search(r"<script|</|```", code, re.IGNORECASE):
        problems.append("Diagram contains script tags or markdown fences")

    for i, line in enumerate(lines, start=1):
        if line.startswith("subgraph") and not SUBGRAPH_RE.match(line):
            problems.append(
                f"Line {i}: subgraph should look like 'subgraph ID Title', without extra quotes"
            )
    return problems


def validate_mermaid(code: str) -> bool:
    return not quick_validate(code)


# ============================================================
# Markdown extraction
# ============================================================

@dataclass(frozen=True)
class MermaidBlock:
    index: int
    start_line: int
    end_line: int
    code: str


def extract_mermaid_blocks(markdown: str) -> List[MermaidBlock]:
    """Find ```mermaid fenced blocks. Line numbers are 1-based fence lines."""
    blocks: List[MermaidBlock] = []
    current: Optional[List[str]] = None
    start = 0

    lines = markdown.splitlines()
    for idx, line in enumerate(lines, start=1):
        stripped = line.strip()
        if current is None:
            if stripped.startswith("```mermaid"):
                current, start = [], idx
            continue
        if stripped.startswith("```"):
            blocks.append(MermaidBlock(len(blocks), start, idx, "\n".join(current)))
            current = None
            continue
        current.append(line)

    if current is not None:
        blocks.append(MermaidBlock(len(blocks), start, len(lines), "\n".join(current)))
    return blocks
