import pytest

from mermaid_guard.dsl.mermaid import (
    extract_mermaid_blocks,
    normalize_mermaid,
    parse_node_token,
    parse_to_ast,
    quick_validate,
    split_edge_chain,
    validate_mermaid,
)
from mermaid_guard.ir.errors import MermaidSyntaxError, StructuralError

SAMPLE = """\
flowchart TB
%% checkout path
A[Start] --> B{Paid?}
B -->|yes| C(Ship)
B -.->|no| D
C ==> E
subgraph fulfil Fulfilment
  direction LR
  E[Warehouse]
end
"""


def test_parse_sample():
    graph = parse_to_ast(SAMPLE)

    assert graph.direction == "TD"
    assert graph.node_ids() == ["A", "B", "C", "D", "E"]
    shapes = {n.id: n.shape for n in graph.nodes}
    assert shapes == {"A": "rect", "B": "rhombus", "C": "round", "D": "rect", "E": "rect"}
    assert [(e.source, e.target, e.type, e.label) for e in graph.edges] == [
        ("A", "B", "arrow", ""),
        ("B", "C", "arrow", "yes"),
        ("B", "D", "dotted", "no"),
        ("C", "E", "thick", ""),
    ]
    # E was first seen outside the block, so the subgraph stays empty.
    assert graph.subgraphs[0].title == "Fulfilment"
    assert graph.subgraphs[0].node_ids == ()
    assert {n.id: n.label for n in graph.nodes}["E"] == "Warehouse"


def test_chained_edges_and_semicolons():
    graph = parse_to_ast("graph LR\nA --> B --> C;\n")
    assert graph.direction == "LR"
    assert [e.key for e in graph.edges] == ["A->B#", "B->C#"]


def test_subgraph_bracket_title_and_members():
    graph = parse_to_ast("flowchart TD\nsubgraph grp[Group One]\n  X --> Y\nend\n")
    assert graph.subgraphs[0].title == "Group One"
    assert graph.subgraphs[0].node_ids == ("X", "Y")


def test_node_named_like_keyword_is_a_node():
    graph = parse_to_ast("flowchart TD\nsubgraphs --> endpoint\n")
    assert graph.node_ids() == ["subgraphs", "endpoint"]


def test_syntax_problems_are_collected_with_line_numbers():
    text = "flowchart TD\nA[unclosed --> B\nsubgraph\nsubgraph one\nsubgraph two\nend\nend\nend\n"
    with pytest.raises(MermaidSyntaxError) as excinfo:
        parse_to_ast(text)

    problems = excinfo.value.problems
    assert any(p.startswith("Line 2:") for p in problems)
    assert any(p.startswith("Line 3:") and "subgraph" in p for p in problems)
    assert "Line 5: nested subgraphs are not supported" in problems
    assert any(p.startswith("Line 8:") and "'end' without an open subgraph" in p for p in problems)


def test_missing_header_and_empty_input():
    with pytest.raises(MermaidSyntaxError, match="expected 'flowchart"):
        parse_to_ast("A --> B")
    with pytest.raises(MermaidSyntaxError, match="Diagram is empty"):
        parse_to_ast("   \n%% nothing here\n")


def test_unclosed_subgraph():
    with pytest.raises(MermaidSyntaxError, match="'s' is not closed"):
        parse_to_ast("flowchart TD\nsubgraph s Title\nA\n")


def test_builder_limits_apply():
    with pytest.raises(StructuralError, match="Node budget exceeded"):
        parse_to_ast("flowchart TD\nA --> B --> C\n", max_nodes=2)


@pytest.mark.parametrize("token,expected", [
    ("A", ("A", None, None)),
    ("A[Start]", ("A", "Start", "rect")),
    ("A((Hub))", ("A", "Hub", "circle")),
    ("A(((Stop)))", ("A", "Stop", "doublecircle")),
    ("A[(Store)]", ("A", "Store", "cyl")),
    ('A["x (y)"]', ("A", "x (y)", "rect")),
    ("A[two<br/>lines]", ("A", "two\nlines", "rect")),
])
def test_parse_node_token(token, expected):
    assert parse_node_token(token) == expected


def test_parse_node_token_rejects_unknown_shape():
    with pytest.raises(ValueError, match="unsupported node shape"):
        parse_node_token("A>flag]")


def test_normalize_mermaid():
    fenced = "```mermaid\r\ngraph lr A --> B\r\n\r\nB --> C\r\n```"
    assert normalize_mermaid(fenced) == "flowchart LR\nA --> B\nB --> C"
    assert normalize_mermaid("A --> B") == "flowchart TD\nA --> B"
    assert normalize_mermaid("") == ""


def test_quick_validate():
    assert quick_validate("flowchart TD\nA --> B") == []
    assert validate_mermaid("flowchart LR\nA")
    assert quick_validate("") == ["Diagram is empty"]
    problems = quick_validate("A --> B\n<script>alert(1)</script>")
    assert "First line must be 'flowchart TD' or similar" in problems
    assert "Diagram contains script tags or markdown fences" in problems


def test_extract_mermaid_blocks():
    markdown = "\n".join([
        "# Design",
        "```mermaid",
        "flowchart TD",
        "A --> B",
        "```",
        "text",
        "```python",
        "print('not a diagram')",
        "```",
        "```mermaid",
        "flowchart LR",
    ])
    blocks = extract_mermaid_blocks(markdown)

    assert [(b.index, b.start_line, b.end_line) for b in blocks] == [(0, 2, 5), (1, 10, 11)]
    assert blocks[0].code == "flowchart TD\nA --> B"
    assert parse_to_ast(blocks[1].code).direction == "LR"


def test_split_edge_chain_keeps_operators_inside_labels():
    assert split_edge_chain('A["a --> b"] -->|"x ==> y"| B[c -.-> d]') == [
        'A["a --> b"]', "-->", '"x ==> y"', "B[c -.-> d]",
    ]
    assert split_edge_chain("A -.-> B ==>|go| C") == ["A", "-.->", None, "B", "==>", "go", "C"]
    assert split_edge_chain("A[lonely]") == ["A[lonely]"]


def test_unterminated_quote_is_a_syntax_problem():
    with pytest.raises(MermaidSyntaxError, match="Line 2: unterminated quote"):
        parse_to_ast('flowchart TD\nA["open --> B\n')
