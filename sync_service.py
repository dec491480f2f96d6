from typing import Dict

from checklist_service import ChecklistStore
from progress_service import ProgressStore


def sync_checklist_to_progress(
    checklist: ChecklistStore,
    progress: ProgressStore,
    item_id: str,
    have: int,
) -> Dict[str, int]:
    """Spread a checklist ``have`` count over the entry's linked requirements.

    Links are filled in insertion order, each up to its ``need``; once the
    count runs out every later link is written back to zero. Keyless links
    consume their share without touching the progress ledger. A key that
    appears on several links receives the sum of their shares.

    Returns the values written, keyed by progress key.
    """
    entry = checklist.get(item_id)
    if entry is None:
        return {}

    remaining = int(have)
    allocations: Dict[str, int] = {}
    for link in entry.links:
        if remaining <= 0:
            use = 0
        else:
            use = min(link.need, remaining)
            remaining -= use
        if not link.key:
            continue
        allocations[link.key] = allocations.get(link.key, 0) + use

    progress.set_values(allocations)
    return allocations
