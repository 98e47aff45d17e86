from .compiler import SassCompiler, run_command
from .runner import SassRun, clean_dist_dir, clean_intermediate_dir, process_stylesheets

__all__ = [
    "SassCompiler",
    "SassRun",
    "run_command",
    "process_stylesheets",
    "clean_dist_dir",
    "clean_intermediate_dir",
]
