from __future__ import annotations

import unittest

from pydantic import ValidationError

from formflow.workflow import GraphValidationError, load_graph, load_workflow
from formflow.workflow.loader import canonicalize_payload


def _node(node_id: str, node_type: str, **config: object) -> dict:
    return {"id": node_id, "type": node_type, "label": node_id.title(), "config": dict(config)}


def _edge(edge_id: str, source: str, target: str, port: str = "out") -> dict:
    return {"id": edge_id, "sourceNodeId": source, "sourcePort": port, "targetNodeId": target}


class GraphModelTests(unittest.TestCase):
    def test_loads_tagged_configs_and_adjacency(self) -> None:
        graph = load_graph(
            {
                "id": "wf",
                "nodes": [
                    _node("start", "trigger", triggerType="pageLoad"),
                    _node("check", "condition", field="age", operator="greaterThan", value=18),
                    _node("yes", "redirect", url="https://example.com/ok", newTab=True),
                    _node("no", "showDialog", title="Sorry", message="Too young"),
                ],
                "edges": [
                    _edge("e1", "start", "check"),
                    _edge("e2", "check", "yes", "true"),
                    _edge("e3", "check", "no", "false"),
                ],
            }
        )

        self.assertEqual(list(graph.nodes_by_id), ["start", "check", "yes", "no"])
        self.assertEqual(graph.node("check").config.value, 18)
        self.assertTrue(graph.node("yes").config.new_tab)
        self.assertEqual([edge.id for edge in graph.outgoing_edges("check")], ["e2", "e3"])
        self.assertEqual([edge.id for edge in graph.outgoing_edges("check", "false")], ["e3"])
        self.assertEqual([edge.id for edge in graph.incoming_edges("check")], ["e1"])
        self.assertEqual([node.id for node in graph.root_nodes()], ["start"])
        self.assertIsNone(graph.node("missing"))

    def test_graph_is_immutable(self) -> None:
        graph = load_graph({"nodes": [_node("a", "page")]})
        with self.assertRaises(ValidationError):
            graph.id = "changed"  # type: ignore[misc]
        with self.assertRaises(TypeError):
            graph.nodes_by_id["b"] = graph.node("a")  # type: ignore[index]

    def test_duplicate_node_ids_are_rejected(self) -> None:
        with self.assertRaises(GraphValidationError) as ctx:
            load_graph({"nodes": [_node("a", "page"), _node("a", "page")]})
        self.assertIn("Duplicate node id 'a'", str(ctx.exception))

    def test_unknown_node_type_is_rejected(self) -> None:
        with self.assertRaises(GraphValidationError):
            load_graph({"nodes": [_node("a", "sendEmail")]})

    def test_invalid_json_is_rejected(self) -> None:
        with self.assertRaises(GraphValidationError):
            load_graph("{not json")

    def test_legacy_flat_config_is_canonicalized(self) -> None:
        payload = {
            "nodes": [
                {
                    "id": "api",
                    "type": "callApi",
                    "config": {"api": {"url": "https://example.com", "method": "post", "bodyTemplate": "{}"}},
                },
                {
                    "id": "check",
                    "type": "condition",
                    "config": {"conditionField": "age", "conditionOperator": "lessThan", "conditionValue": "65"},
                },
                {"id": "map", "type": "setData", "config": {"dataMapping": [{"from": "data.id", "to": "userId"}]}},
                {"id": "go", "type": "redirect", "config": {"redirectUrl": "/done", "redirectNewTab": True}},
                {"id": "say", "type": "showDialog", "config": {"dialogTitle": "Hi", "dialogMessage": "There"}},
            ],
        }

        canonical, notes = canonicalize_payload(payload)
        self.assertIn("api", payload["nodes"][0]["config"])
        self.assertEqual(canonical["edges"], [])
        self.assertEqual(len(notes), 9)

        graph = load_workflow(payload)
        self.assertEqual(graph.node("api").config.method, "POST")
        self.assertEqual(graph.node("api").config.body_template, "{}")
        self.assertEqual(graph.node("check").config.operator, "lessThan")
        self.assertEqual(graph.node("map").config.mapping[0].source, "data.id")
        self.assertEqual(graph.node("go").config.url, "/done")
        self.assertEqual(graph.node("say").config.title, "Hi")
        self.assertTrue(graph.enabled)

    def test_fallback_start_nodes_for_closed_loop(self) -> None:
        graph = load_graph(
            {
                "nodes": [_node("a", "page"), _node("b", "page")],
                "edges": [_edge("e1", "a", "b"), _edge("e2", "b", "a")],
            }
        )
        self.assertEqual(graph.root_nodes(), [])
        self.assertEqual([node.id for node in graph.fallback_start_nodes()], ["a"])


if __name__ == "__main__":
    unittest.main()
