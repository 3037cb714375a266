"""Name-based signals: backup naming and template/example naming."""

from __future__ import annotations

import posixpath
from typing import Iterable, List, Optional

from ..models import FileType, SignalOutcome
from ..naming import is_template_name
from .base import ClassificationContext, SignalEvaluator

BACKUP_NAME_WEIGHT = 80
TEMPLATE_NAME_WEIGHT = 60


class BackupNameSignal(SignalEvaluator):
    """Flags backup/copy/temp/broken file names and locates the probable original."""

    name = "backup-name"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        record = context.record
        if not context.is_backup_named:
            return []

        outcomes: List[SignalOutcome] = [
            SignalOutcome(
                confidence_delta=BACKUP_NAME_WEIGHT,
                reason="File name matches backup pattern",
                type_override=FileType.BACKUP,
            )
        ]
        original_name = context.names.derive_original(record.name)
        if original_name is None:
            return outcomes

        original_path = _locate(context, record.directory, original_name)
        if original_path is not None:
            outcomes.append(SignalOutcome(reason=f"Probable original: {original_path}", related_file=original_path))
        else:
            outcomes.append(SignalOutcome(reason=f"Probable original {original_name} not found"))
        return outcomes


class TemplateNameSignal(SignalEvaluator):
    """Treats template/example/sample names as starter content."""

    name = "template-name"

    def evaluate(self, context: ClassificationContext) -> Iterable[SignalOutcome]:
        if not is_template_name(context.record.name):
            return []
        return [
            SignalOutcome(
                confidence_delta=TEMPLATE_NAME_WEIGHT,
                reason="Appears to be a template or example file",
                type_override=FileType.TEMPLATE,
            )
        ]


def _locate(context: ClassificationContext, directory: str, name: str) -> Optional[str]:
    sibling = posixpath.join(directory, name) if directory else name
    if sibling in context.records and sibling != context.record.path:
        return sibling
    elsewhere = sorted(
        path
        for path, record in context.records.items()
        if record.name == name and path != context.record.path
    )
    return elsewhere[0] if elsewhere else None
