"""
Drift analysis between a stored baseline and an incoming snapshot.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..inventory.models import Device, SpecSnapshot
from .models import ChangeType, ComponentDrift, ComponentType, Severity
from .slots import assign_indices

logger = logging.getLogger(__name__)

# Per-entry fields compared for the multi-entry families: (soft, identity)
RAM_FIELDS = ("capacity", "serial_number")
STORAGE_FIELDS = ("model", "serial_number")


def _differs(baseline: Optional[str], actual: Optional[str]) -> bool:
    """A field only diverges when both sides reported a value."""
    return baseline is not None and actual is not None and baseline != actual


class DriftAnalyzer:
    """
    Compares an incoming snapshot with a device's baseline, one component
    family at a time.

    ``compare`` returns a dict keyed by every family that could be checked:
    the value is a ``ComponentDrift`` when the family diverges, or ``None``
    when it matches the baseline. Families missing from either side are left
    out entirely, as are RAM/storage families where no submitted entry pairs
    with a baseline row; absence is not treated as removal.
    """

    def compare(
        self, device: Device, snapshot: SpecSnapshot
    ) -> Dict[ComponentType, Optional[ComponentDrift]]:
        results: Dict[ComponentType, Optional[ComponentDrift]] = {}

        if device.cpu and snapshot.cpu_model:
            results[ComponentType.CPU] = self._compare_model(
                ComponentType.CPU, "CPU", device.cpu.model, snapshot.cpu_model
            )

        if device.gpu and snapshot.gpu:
            results[ComponentType.GPU] = self._compare_model(
                ComponentType.GPU, "GPU", device.gpu.model, snapshot.gpu
            )

        if device.motherboard and snapshot.motherboard:
            results[ComponentType.MOTHERBOARD] = self._compare_motherboard(
                device.motherboard.model,
                device.motherboard.serial_number,
                snapshot.motherboard,
                snapshot.motherboard_serial,
            )

        if device.rams and snapshot.ram_details:
            self._compare_family(
                results,
                ComponentType.RAM,
                "RAM",
                "slot",
                {ram.slot_index: ram for ram in device.rams},
                snapshot.ram_details,
                RAM_FIELDS,
            )

        if device.storages and snapshot.storage_details:
            self._compare_family(
                results,
                ComponentType.STORAGE,
                "Storage",
                "disk",
                {disk.disk_index: disk for disk in device.storages},
                snapshot.storage_details,
                STORAGE_FIELDS,
            )

        drifted = [c.value for c, drift in results.items() if drift is not None]
        if drifted:
            logger.debug(f"{device.hostname}: drift in {', '.join(drifted)}")

        return results

    def _compare_model(
        self, component_type: ComponentType, label: str, baseline: str, actual: str
    ) -> Optional[ComponentDrift]:
        """Single identity field (CPU, GPU): any difference is a soft warning."""
        if baseline == actual:
            return None

        return ComponentDrift(
            component_type=component_type,
            change_type=ChangeType.MODIFIED,
            severity=Severity.WARNING,
            old_value=baseline,
            new_value=actual,
            message=f'{label} mismatch: baseline "{baseline}" vs actual "{actual}"',
        )

    def _compare_motherboard(
        self,
        baseline_model: str,
        baseline_serial: Optional[str],
        actual_model: str,
        actual_serial: Optional[str],
    ) -> Optional[ComponentDrift]:
        """
        Four-way classification on model and serial.

        The serial is the unforgeable identity signal, so a serial change is
        critical even when the model string is unchanged.
        """
        model_changed = baseline_model != actual_model
        serial_changed = _differs(baseline_serial, actual_serial)

        if not model_changed and not serial_changed:
            return None

        if model_changed and serial_changed:
            change_type = ChangeType.REPLACED
            severity = Severity.CRITICAL
            message = (
                f'Motherboard replaced: baseline "{baseline_model}" (SN {baseline_serial}) '
                f'vs actual "{actual_model}" (SN {actual_serial})'
            )
        elif serial_changed:
            change_type = ChangeType.SERIAL_CHANGED
            severity = Severity.CRITICAL
            message = (
                f'Motherboard serial changed: baseline SN {baseline_serial} '
                f'vs actual SN {actual_serial} (model "{actual_model}")'
            )
        else:
            change_type = ChangeType.MODIFIED
            severity = Severity.WARNING
            message = f'Motherboard mismatch: baseline "{baseline_model}" vs actual "{actual_model}"'

        return ComponentDrift(
            component_type=ComponentType.MOTHERBOARD,
            change_type=change_type,
            severity=severity,
            old_value=f"{baseline_model}|{baseline_serial or ''}",
            new_value=f"{actual_model}|{actual_serial or baseline_serial or ''}",
            message=message,
        )

    def _compare_family(
        self,
        results: Dict[ComponentType, Optional[ComponentDrift]],
        component_type: ComponentType,
        label: str,
        index_label: str,
        baseline: Dict[int, object],
        entries: Sequence[object],
        fields: Tuple[str, str],
    ) -> None:
        """
        Pair submitted entries with baseline rows and record the outcome.

        A family where no entry pairs with a baseline row proves nothing and
        is left out, so it cannot heal open records.
        """
        incoming = assign_indices(entries, known=baseline.keys())
        pairs = [(index, baseline[index], incoming[index]) for index in sorted(baseline) if index in incoming]
        if not pairs:
            logger.debug(f"No {label} entries pair with the baseline; skipping")
            return
        results[component_type] = self._compare_entries(component_type, label, index_label, pairs, fields)

    def _compare_entries(
        self,
        component_type: ComponentType,
        label: str,
        index_label: str,
        pairs: Sequence[Tuple[int, object, object]],
        fields: Tuple[str, str],
    ) -> Optional[ComponentDrift]:
        """
        Compare RAM slots or disks pairwise and aggregate every divergent
        entry into one drift for the family.
        """
        soft_field, identity_field = fields
        descriptions: List[str] = []
        old_parts: List[str] = []
        new_parts: List[str] = []
        identity_mismatch = False

        for index, base, actual in pairs:
            base_soft = getattr(base, soft_field)
            actual_soft = getattr(actual, soft_field)
            base_id = getattr(base, identity_field)
            actual_id = getattr(actual, identity_field)

            soft_changed = _differs(base_soft, actual_soft)
            id_changed = _differs(base_id, actual_id)
            if not soft_changed and not id_changed:
                continue

            details = []
            if soft_changed:
                details.append(f'{soft_field} "{base_soft}" -> "{actual_soft}"')
            if id_changed:
                identity_mismatch = True
                details.append(f"serial {base_id} -> {actual_id}")

            # An unreported field keeps its baseline value in the composite
            actual_soft = actual_soft or base_soft
            actual_id = actual_id or base_id

            descriptions.append(f"{index_label} {index}: {', '.join(details)}")
            old_parts.append(f"{index_label}{index}={base_soft or ''}|{base_id or ''}")
            new_parts.append(f"{index_label}{index}={actual_soft or ''}|{actual_id or ''}")

        if not descriptions:
            return None

        if identity_mismatch:
            change_type = ChangeType.REPLACED
            severity = Severity.CRITICAL
            headline = f"{label} replaced"
        else:
            change_type = ChangeType.MODIFIED
            severity = Severity.WARNING
            headline = f"{label} mismatch"

        return ComponentDrift(
            component_type=component_type,
            change_type=change_type,
            severity=severity,
            old_value="; ".join(old_parts),
            new_value="; ".join(new_parts),
            message=f"{headline}: {'; '.join(descriptions)}",
        )
