#!/usr/bin/env python3
"""End-to-end tests for Mermaid mindmap -> draw.io conversion."""

import sys
sys.path.insert(0, 'src')

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from mindmap_drawio import Shape, build_mindmap, convert

EXAMPLE = """mindmap
  root((mindmap))
    Origins
      Long history
    Research
"""

LARGER = """mindmap
  root((Project))
    Goals
      [Ship v1]
      (Docs)
    Risks
      {{Budget}}
      )Schedule(
    Team
      Alice
        Frontend
      Bob
    Notes
"""


def _strip_time_fields(xml):
    xml = re.sub(r'modified="[^"]*"', 'modified=""', xml)
    return re.sub(r'id="diagram_\d+"', 'id="diagram_"', xml)


def _graph(xml):
    cells = ET.fromstring(xml).findall('.//mxCell')
    vertices = [c.get('id') for c in cells if c.get('vertex') == '1']
    edges = [(c.get('source'), c.get('target')) for c in cells if c.get('edge') == '1']
    return vertices, edges


def test_convert_example():
    result = build_mindmap(EXAMPLE)

    assert len(result.nodes) == 4
    assert len(result.edges) == 3
    assert result.root.shape == Shape.CIRCLE
    assert result.root.text == "mindmap"
    assert [n.level for n in result.nodes] == [0, 1, 2, 1]
    # ceil(2/2) = 1 child goes right
    assert [c.direction for c in result.root.children] == [1, -1]


def test_convert_is_deterministic_for_fixed_clock():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert convert(LARGER, now=now) == convert(LARGER, now=now)


def test_only_time_fields_vary():
    first = convert(LARGER, now=datetime(2024, 1, 1, tzinfo=timezone.utc))
    second = convert(LARGER, now=datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc))

    assert first != second
    assert _strip_time_fields(first) == _strip_time_fields(second)


@pytest.mark.parametrize("source", ["", "   \n\n", "mindmap", "mindmap\n\n\t\n"])
def test_empty_input_yields_empty_diagram(source):
    result = build_mindmap(source)
    assert result.is_empty
    assert result.nodes == [] and result.edges == []

    vertices, edges = _graph(convert(source))
    assert vertices == [] and edges == []


def test_edges_form_a_tree_rooted_at_node0():
    vertices, edges = _graph(convert(LARGER))

    assert len(edges) == len(vertices) - 1

    children = {}
    for source, target in edges:
        children.setdefault(source, []).append(target)

    seen = []
    stack = ["node0"]
    while stack:
        node = stack.pop()
        seen.append(node)
        stack.extend(children.get(node, []))

    assert sorted(seen) == sorted(vertices)
    assert len(seen) == len(set(seen))


def test_shapes_in_larger_example():
    result = build_mindmap(LARGER)
    shapes = {n.text: n.shape for n in result.nodes}

    assert shapes["Project"] == Shape.CIRCLE
    assert shapes["Ship v1"] == Shape.SQUARE
    assert shapes["Docs"] == Shape.ROUNDED
    assert shapes["Budget"] == Shape.HEXAGON
    assert shapes["Schedule"] == Shape.CLOUD
    assert shapes["Alice"] == Shape.DEFAULT


def test_root_split_with_four_children():
    result = build_mindmap(LARGER)
    assert [c.direction for c in result.root.children] == [1, 1, -1, -1]

    # deeper nodes keep their branch's side
    team = result.root.children[2]
    assert {n.direction for n in team.walk()} == {-1}


def test_connectors_follow_relative_position():
    xml = convert(LARGER)
    nodes = {n.id: n for n in build_mindmap(LARGER).nodes}

    for cell in ET.fromstring(xml).findall('.//mxCell[@edge="1"]'):
        source = nodes[cell.get('source')]
        target = nodes[cell.get('target')]
        style = cell.get('style')
        if target.x < source.x:
            assert 'exitX=0;exitY=0.5;entryX=1;entryY=0.5;' in style
        else:
            assert 'exitX=1;exitY=0.5;entryX=0;entryY=0.5;' in style


def test_malformed_markup_never_raises():
    xml = convert("mindmap\n  [broken\n    ((half)\n    ))\n    {{x}\n")
    vertices, edges = _graph(xml)
    assert len(vertices) == 4
    assert len(edges) == 3


EXPECTED_EXAMPLE_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<mxfile host="app.diagrams.net" modified="" agent="Mermaid-Mindmap-Converter" version="21.0.0">
  <diagram name="Mindmap" id="diagram_">
    <mxGraphModel dx="1000" dy="600" grid="1" gridSize="10" guides="1" tooltips="1" connect="1" arrows="1" fold="1" page="1" pageScale="1" pageWidth="2400" pageHeight="1800" math="0" shadow="0">
      <root>
        <mxCell id="0"/>
        <mxCell id="1" parent="0"/>
        <mxCell id="node0" value="mindmap" style="rounded=1;whiteSpace=wrap;html=1;overflow=hidden;fontSize=14;fillColor=#d5e8d4;strokeColor=#82b366;fontStyle=1;" vertex="1" parent="1">
          <mxGeometry x="1100" y="855" width="200" height="90" as="geometry"/>
        </mxCell>
        <mxCell id="node1" value="Origins" style="rounded=1;whiteSpace=wrap;html=1;overflow=hidden;fontSize=12;fillColor=#fff2cc;strokeColor=#d6b656;" vertex="1" parent="1">
          <mxGeometry x="1375" y="805" width="250" height="70" as="geometry"/>
        </mxCell>
        <mxCell id="node2" value="Long history" style="rounded=1;whiteSpace=wrap;html=1;overflow=hidden;fontSize=11;fillColor=#f8cecc;strokeColor=#b85450;" vertex="1" parent="1">
          <mxGeometry x="1690" y="812.5" width="220" height="55" as="geometry"/>
        </mxCell>
        <mxCell id="node3" value="Research" style="rounded=1;whiteSpace=wrap;html=1;overflow=hidden;fontSize=12;fillColor=#fff2cc;strokeColor=#d6b656;" vertex="1" parent="1">
          <mxGeometry x="775" y="925" width="250" height="70" as="geometry"/>
        </mxCell>
        <mxCell id="conn2" style="edgeStyle=entityRelationEdgeStyle;curved=1;rounded=0;orthogonalLoop=1;jettySize=auto;html=1;endArrow=none;strokeWidth=2;exitX=1;exitY=0.5;entryX=0;entryY=0.5;" edge="1" parent="1" source="node0" target="node1">
          <mxGeometry relative="1" as="geometry"/>
        </mxCell>
        <mxCell id="conn3" style="edgeStyle=entityRelationEdgeStyle;curved=1;rounded=0;orthogonalLoop=1;jettySize=auto;html=1;endArrow=none;strokeWidth=2;exitX=1;exitY=0.5;entryX=0;entryY=0.5;" edge="1" parent="1" source="node1" target="node2">
          <mxGeometry relative="1" as="geometry"/>
        </mxCell>
        <mxCell id="conn4" style="edgeStyle=entityRelationEdgeStyle;curved=1;rounded=0;orthogonalLoop=1;jettySize=auto;html=1;endArrow=none;strokeWidth=2;exitX=0;exitY=0.5;entryX=1;entryY=0.5;" edge="1" parent="1" source="node0" target="node3">
          <mxGeometry relative="1" as="geometry"/>
        </mxCell>
      </root>
    </mxGraphModel>
  </diagram>
</mxfile>"""


def test_example_document_matches_expected_markup():
    xml = convert(EXAMPLE, now=datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc))

    assert 'modified="2024-05-01T12:00:00.123Z"' in xml
    assert 'id="diagram_1714564800123"' in xml
    assert _strip_time_fields(xml) == EXPECTED_EXAMPLE_XML


def test_deeply_nested_outline_converts():
    depth = 1200
    source = "mindmap\n" + "\n".join(" " * i + f"n{i}" for i in range(depth))

    result = build_mindmap(source)
    assert len(result.nodes) == depth
    assert len(result.edges) == depth - 1
    assert result.nodes[-1].direction == 1

    vertices, edges = _graph(convert(source))
    assert len(vertices) == depth
    assert len(edges) == depth - 1
