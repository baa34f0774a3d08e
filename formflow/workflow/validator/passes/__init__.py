from formflow.workflow.validator.passes.branch_pass import run_branch_pass
from formflow.workflow.validator.passes.config_pass import run_config_pass
from formflow.workflow.validator.passes.cycle_pass import find_cycles, run_cycle_pass
from formflow.workflow.validator.passes.reachability_pass import build_adjacency, run_reachability_pass
from formflow.workflow.validator.passes.structure_pass import run_structure_pass

__all__ = [
    "build_adjacency",
    "find_cycles",
    "run_branch_pass",
    "run_config_pass",
    "run_cycle_pass",
    "run_reachability_pass",
    "run_structure_pass",
]
