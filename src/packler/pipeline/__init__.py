from .manifest import encode_manifest, logical_mapping, read_manifest, write_manifest
from .orchestrator import BuildOrchestrator, BuildResult, resolve_compiler
from .report import BuildReport, DeployReport
from .types import AssetManifest, AssetRecord, StageOutcome

__all__ = [
    "AssetManifest",
    "AssetRecord",
    "StageOutcome",
    "BuildOrchestrator",
    "BuildResult",
    "BuildReport",
    "DeployReport",
    "resolve_compiler",
    "encode_manifest",
    "write_manifest",
    "read_manifest",
    "logical_mapping",
]
