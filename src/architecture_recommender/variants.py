"""Architecture variant derivation.

A template's base variant is its default service set, filtered by the
requirements. Optimized variants apply a declarative VariantRule to the
base: service substitutions, additions, configuration and characteristic
changes. Substitutions that would drop a capability the template needs
are skipped.
"""

import logging
from typing import Optional

from .catalog import ArchitectureCatalog, VariantRule
from .compatibility import ServiceCompatibilityValidator
from .config import RecommenderConfig, get_config
from .schema import (
    ArchitectureTemplate,
    ArchitectureVariant,
    Characteristics,
    OptimizationFocus,
    Preferences,
    RankingContext,
    Requirements,
    ServiceCandidate,
    TrafficLevel,
)

logger = logging.getLogger(__name__)


class VariantBuilder:
    """Builds the base and optimized variants of a template."""

    def __init__(
        self,
        catalog: ArchitectureCatalog,
        config: Optional[RecommenderConfig] = None,
    ):
        self.catalog = catalog
        self.config = config or get_config()
        self.compatibility = ServiceCompatibilityValidator(catalog.compatibility)

    def build(
        self,
        template: ArchitectureTemplate,
        requirements: Requirements,
        preferences: Optional[Preferences] = None,
        context: Optional[RankingContext] = None,
    ) -> list[ArchitectureVariant]:
        """Return the base variant followed by every enabled rule variant.

        A rule variant whose services and service configuration end up the
        same as the base is dropped.
        """
        preferences = preferences or Preferences()
        context = context or RankingContext()
        traffic = requirements.traffic or context.traffic or TrafficLevel.LOW

        base = self.base_variant(template, requirements)
        variants = [base]

        for rule_id, rule in self.catalog.variants.items():
            condition = rule.enabled_when
            if condition and not condition.holds(getattr(preferences, condition.preference)):
                continue

            variant = self.apply_rule(rule_id, rule, base, template, requirements, traffic)
            if self._signature(variant) == self._signature(base):
                logger.debug("Variant %s of %s matches the base; skipped", rule_id, template.id)
                continue
            variants.append(variant)

        return variants

    @staticmethod
    def _signature(variant: ArchitectureVariant) -> list:
        return sorted(
            ((s.service_id, s.configuration) for s in variant.services),
            key=lambda item: item[0],
        )

    def base_variant(self, template: ArchitectureTemplate, requirements: Requirements) -> ArchitectureVariant:
        """Default service set of a template for the given requirements."""
        services = []
        for slot in template.services:
            if slot.include_when and not requirements.needs(slot.include_when):
                continue
            service_id = slot.service
            if requirements.database_subtype in slot.subtype_overrides:
                service_id = slot.subtype_overrides[requirements.database_subtype]
            services.append(self.catalog.candidate(
                service_id,
                purpose=slot.purpose,
                required=slot.required,
                configuration=slot.configuration,
            ))

        ids = [s.service_id for s in services]
        return ArchitectureVariant(
            id=f"{template.id}-base",
            name=template.name,
            focus=OptimizationFocus.BALANCED,
            services=services,
            characteristics=template.characteristics,
            confidence=self.config.matching.base_variant_confidence,
            pros=list(template.pros),
            cons=list(template.cons),
            warnings=self.compatibility.validate(ids),
        )

    def apply_rule(
        self,
        rule_id: str,
        rule: VariantRule,
        base: ArchitectureVariant,
        template: ArchitectureTemplate,
        requirements: Requirements,
        traffic: TrafficLevel,
    ) -> ArchitectureVariant:
        """Derive a variant from the base by applying one rule."""
        services = list(base.services)
        changes = []
        needed = self._covered(template, services)

        for sub in rule.substitutions:
            ids = [s.service_id for s in services]
            if sub.replace not in ids:
                continue
            if sub.app_types and requirements.app_type not in sub.app_types:
                continue
            if sub.traffic and traffic not in sub.traffic:
                continue
            if sub.unless_subtype and requirements.database_subtype == sub.unless_subtype:
                continue

            index = ids.index(sub.replace)
            old = services[index]
            if sub.with_service in ids:
                proposed = services[:index] + services[index + 1:]
            else:
                new = self.catalog.candidate(sub.with_service, purpose=old.purpose, required=old.required)
                proposed = services[:index] + [new] + services[index + 1:]

            missing = needed - self._covered(template, proposed)
            if missing:
                logger.debug(
                    "Skipping %s -> %s in %s: would drop %s",
                    sub.replace, sub.with_service, rule_id, sorted(missing),
                )
                continue

            services = proposed
            replacement = self.catalog.service(sub.with_service)
            changes.append(
                f"Replaced {old.name} with {replacement.name if replacement else sub.with_service}"
            )

        for addition in rule.additions:
            ids = [s.service_id for s in services]
            if addition.service in ids:
                continue
            if addition.if_present and not any(s in ids for s in addition.if_present):
                continue
            added = self.catalog.candidate(addition.service, purpose=addition.purpose, required=False)
            services.append(added)
            changes.append(f"Added {added.name}")

        services = [self._configure(s, rule) for s in services]

        ids = [s.service_id for s in services]
        return ArchitectureVariant(
            id=f"{template.id}-{rule_id}",
            name=f"{template.name} ({rule.name})",
            focus=rule.focus,
            services=services,
            characteristics=self._characteristics(base.characteristics, rule),
            confidence=rule.confidence,
            pros=rule.pros + template.pros,
            cons=rule.cons + template.cons,
            changes=changes,
            warnings=self.compatibility.validate(ids),
        )

    def _covered(self, template: ArchitectureTemplate, services: list[ServiceCandidate]) -> set[str]:
        """Template capabilities provided by a service set."""
        provided = set()
        for service in services:
            if service.definition:
                provided.update(service.definition.provides)
        return provided & set(template.required_capabilities)

    @staticmethod
    def _configure(service: ServiceCandidate, rule: VariantRule) -> ServiceCandidate:
        settings = {
            **rule.configuration.get("*", {}),
            **rule.configuration.get(service.service_id, {}),
        }
        if not settings:
            return service
        return service.model_copy(update={"configuration": {**service.configuration, **settings}})

    @staticmethod
    def _characteristics(base: Characteristics, rule: VariantRule) -> Characteristics:
        values = base.model_dump()
        values.update(rule.characteristics.set)
        for name, delta in rule.characteristics.adjust.items():
            values[name] += delta
        return Characteristics(**{name: max(1, min(value, 5)) for name, value in values.items()})
