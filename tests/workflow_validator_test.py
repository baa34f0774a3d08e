from __future__ import annotations

import unittest

from formflow.workflow import load_graph, render_issues, validate_workflow
from formflow.workflow.validator.passes import find_cycles


def _node(node_id: str, node_type: str, **config: object) -> dict:
    return {"id": node_id, "type": node_type, "label": node_id, "config": dict(config)}


def _edge(edge_id: str, source: str, target: str, port: str = "out") -> dict:
    return {"id": edge_id, "sourceNodeId": source, "sourcePort": port, "targetNodeId": target}


def _codes(result) -> list[str]:
    return [issue.code for issue in result.issues]


class WorkflowValidatorTests(unittest.TestCase):
    def test_valid_workflow_has_no_issues(self) -> None:
        result = validate_workflow(
            {
                "nodes": [
                    _node("start", "trigger", triggerType="formSubmit"),
                    _node("check", "condition", field="age", operator="greaterThan", value=17),
                    _node("ok", "redirect", url="/welcome"),
                    _node("nope", "showDialog", message="Too young"),
                ],
                "edges": [
                    _edge("e1", "start", "check"),
                    _edge("e2", "check", "ok", "true"),
                    _edge("e3", "check", "nope", "false"),
                ],
            }
        )
        self.assertTrue(result.valid)
        self.assertEqual(result.issues, [])

    def test_dangling_edge_is_an_error_referencing_the_edge(self) -> None:
        result = validate_workflow(
            {
                "nodes": [_node("start", "trigger", triggerType="pageLoad")],
                "edges": [_edge("e-ghost", "start", "ghost")],
            }
        )

        self.assertFalse(result.valid)
        dangling = [issue for issue in result.issues if issue.code == "EDGE_DANGLING"]
        self.assertEqual(len(dangling), 1)
        self.assertEqual(dangling[0].severity, "error")
        self.assertEqual(dangling[0].edge_id, "e-ghost")
        self.assertIn("ghost", dangling[0].message)
        self.assertEqual(dangling[0].to_dict()["edgeId"], "e-ghost")

    def test_unreachable_nodes_and_missing_trigger_are_warnings(self) -> None:
        result = validate_workflow(
            {
                "nodes": [
                    _node("start", "trigger", triggerType="pageLoad"),
                    _node("island", "showDialog", message="never"),
                ],
            }
        )
        self.assertTrue(result.valid)
        self.assertEqual(_codes(result), ["NODE_UNREACHABLE"])
        self.assertEqual(result.warnings[0].node_id, "island")

        no_trigger = validate_workflow({"nodes": [_node("a", "page"), _node("b", "page")], "edges": [_edge("e", "a", "b")]})
        self.assertEqual(_codes(no_trigger), ["TRIGGER_MISSING"])

    def test_missing_configuration_per_node_type(self) -> None:
        result = validate_workflow(
            {
                "nodes": [
                    _node("start", "trigger", triggerType="fieldChange"),
                    _node("api", "callApi"),
                    _node("opts", "fetchOptions", url="https://x.test"),
                    _node("check", "condition", field="age"),
                    _node("go", "redirect"),
                    _node("map", "setData"),
                ],
                "edges": [
                    _edge("e1", "start", "api"),
                    _edge("e2", "api", "opts"),
                    _edge("e3", "opts", "check"),
                    _edge("e4", "check", "go", "true"),
                    _edge("e5", "check", "map", "false"),
                ],
            }
        )

        self.assertFalse(result.valid)
        missing = sorted(issue.node_id for issue in result.errors if issue.code == "CONFIG_MISSING")
        self.assertEqual(missing, ["api", "check", "go", "map", "opts", "start"])

    def test_incomplete_branches_are_warnings(self) -> None:
        result = validate_workflow(
            {
                "nodes": [
                    _node("start", "trigger", triggerType="pageLoad"),
                    _node("check", "condition", field="x", operator="isEmpty"),
                    _node("fill", "setData", mapping=[{"from": "a", "to": "b"}]),
                ],
                "edges": [_edge("e1", "start", "check"), _edge("e2", "check", "fill", "true")],
            }
        )
        self.assertTrue(result.valid)
        self.assertEqual(_codes(result), ["BRANCH_INCOMPLETE"])
        self.assertIn('"false"', result.issues[0].message)

    def test_port_shape_violations(self) -> None:
        result = validate_workflow(
            {
                "nodes": [
                    _node("start", "trigger", triggerType="pageLoad"),
                    _node("a", "page"),
                    _node("b", "page"),
                    _node("c", "page"),
                ],
                "edges": [
                    _edge("e1", "start", "a"),
                    _edge("e2", "start", "b"),
                    _edge("e3", "a", "c", "true"),
                    _edge("e4", "c", "start"),
                ],
            }
        )
        codes = _codes(result)
        self.assertIn("EDGE_PORT_DUPLICATE", codes)
        self.assertIn("EDGE_PORT_INVALID", codes)
        self.assertIn("TRIGGER_HAS_INCOMING", codes)

    def test_cycles_are_errors(self) -> None:
        payload = {
            "nodes": [_node("a", "page"), _node("b", "page")],
            "edges": [_edge("e1", "a", "b"), _edge("e2", "b", "a")],
        }
        result = validate_workflow(payload)

        self.assertFalse(result.valid)
        cycle = [issue for issue in result.errors if issue.code == "GRAPH_CYCLE"]
        self.assertEqual(len(cycle), 1)
        self.assertIn("a -> b -> a", cycle[0].message)
        self.assertEqual(find_cycles(load_graph(payload)), [["a", "b"]])

    def test_long_chains_validate_without_recursion_limits(self) -> None:
        count = 1500
        nodes = [_node("start", "trigger", triggerType="pageLoad")] + [_node(f"p{i}", "page") for i in range(count)]
        edges = [_edge("e-start", "start", "p0")] + [_edge(f"e{i}", f"p{i}", f"p{i + 1}") for i in range(count - 1)]

        result = validate_workflow({"nodes": nodes, "edges": edges})
        self.assertTrue(result.valid)
        self.assertEqual(result.issues, [])

        looped = validate_workflow({"nodes": nodes, "edges": [*edges, _edge("e-back", f"p{count - 1}", "p0")]})
        cycles = [issue for issue in looped.errors if issue.code == "GRAPH_CYCLE"]
        self.assertEqual(len(cycles), 1)
        self.assertEqual(cycles[0].node_id, "p0")
        self.assertIn(f"p{count - 1} -> p0", cycles[0].message)

    def test_empty_graph_is_a_warning(self) -> None:
        result = validate_workflow({"nodes": []})
        self.assertTrue(result.valid)
        self.assertEqual(_codes(result), ["GRAPH_EMPTY"])

    def test_validation_is_repeatable_and_rendered_errors_first(self) -> None:
        graph = load_graph(
            {
                "nodes": [_node("start", "trigger", triggerType="pageLoad"), _node("island", "redirect")],
                "edges": [_edge("e1", "start", "missing")],
            }
        )
        first = validate_workflow(graph)
        second = validate_workflow(graph)
        self.assertEqual(first.to_dict(), second.to_dict())

        lines = render_issues(first.issues).splitlines()
        self.assertTrue(lines[0].startswith("- [ERROR]"))
        self.assertTrue(lines[-1].startswith("- [WARNING]"))


if __name__ == "__main__":
    unittest.main()
