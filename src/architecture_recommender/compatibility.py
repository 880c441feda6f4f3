"""Service compatibility checks for architecture variants."""

from .catalog import CompatibilityRules


class ServiceCompatibilityValidator:
    """Flags overlapping services and missing companions in a service set."""

    def __init__(self, rules: CompatibilityRules):
        self.rules = rules

    def validate(self, service_ids: list[str]) -> list[str]:
        """Return human-readable warnings for a set of service ids."""
        present = set(service_ids)
        warnings = []

        for conflict in self.rules.conflicts:
            if all(service in present for service in conflict.services):
                warnings.append(conflict.message)

        for service_id in service_ids:
            missing = [
                companion for companion in self.rules.companions.get(service_id, [])
                if companion not in present
            ]
            if missing:
                warnings.append(f"{service_id} is usually deployed with {', '.join(missing)}")

        return warnings
