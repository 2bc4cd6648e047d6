"""
Audit logging for payroll and leave data changes.
Appends one JSON line per change so finalized payroll history stays traceable.
"""
import json
from pathlib import Path
from typing import Dict, List, Any, Optional
from datetime import datetime

from paydesk.core.config import settings

class AuditLogger:
    """Append-only JSONL audit trail, one file per tenant."""

    def __init__(self, tenant_id: str, audit_dir: Optional[str] = None):
        self.tenant_id = tenant_id
        self.audit_dir = Path(audit_dir or settings.LOG_PATH) / "audit"
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        self.changes_log = self.audit_dir / f"{tenant_id}_changes.jsonl"

    def log_data_change(
        self,
        entity_type: str,
        operation: str,  # 'create', 'update', 'finalize', 'approve', 'reject'
        entity_id: str,
        changes: Dict[str, Any],
        user_id: Optional[str] = None
    ):
        """Log an individual data change for the audit trail."""

        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'tenant_id': self.tenant_id,
            'entity_type': entity_type,
            'operation': operation,
            'entity_id': entity_id,
            'changes': changes,
            'user_id': user_id
        }

        with open(self.changes_log, 'a', encoding='utf-8') as f:
            f.write(json.dumps(log_entry, default=str) + '\n')
        return log_entry

    def get_change_history(self, entity_type: str, entity_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get change history for an entity type, optionally one entity (newest first)."""
        if not self.changes_log.exists():
            return []

        changes = []
        with open(self.changes_log, 'r', encoding='utf-8') as f:
            for line in f:
                try:
                    entry = json.loads(line.strip())
                except json.JSONDecodeError:
                    continue
                if entry.get('entity_type') != entity_type:
                    continue
                if entity_id is not None and entry.get('entity_id') != entity_id:
                    continue
                changes.append(entry)

        changes.sort(key=lambda x: x['timestamp'], reverse=True)
        return changes
