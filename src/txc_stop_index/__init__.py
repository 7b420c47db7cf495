from .stages.build.archive import ArchiveEntry, iter_xml_entries
from .stages.build.engine import BuildState, consolidate_archive, consolidate_document
from .stages.build.index import StopServiceIndex, identity_key
from .stages.build.models import ResolvedService, ServiceFact, TxcDocument
from .stages.build.operators import OperatorDirectory, resolve_operator
from .stages.build.output import build_output
from .stages.build.txc import parse_document
from .stages.build.validity import is_active
from .stages.build.versions import VersionKey, VersionRegistry

__all__ = [
    "ArchiveEntry",
    "BuildState",
    "OperatorDirectory",
    "ResolvedService",
    "ServiceFact",
    "StopServiceIndex",
    "TxcDocument",
    "VersionKey",
    "VersionRegistry",
    "build_output",
    "consolidate_archive",
    "consolidate_document",
    "identity_key",
    "is_active",
    "iter_xml_entries",
    "parse_document",
    "resolve_operator",
]
