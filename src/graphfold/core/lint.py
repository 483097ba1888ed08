from collections.abc import Callable

from . import ir
from .errors import CompositionError
from .validator import (
    CompositionState,
    check_dependency_selections,
    check_duplicate_enum_or_scalar,
    check_enums_for_matches,
    check_external_missing_on_base,
    check_external_unused,
    check_external_used_on_base,
    check_field_ownership_conflicts,
)

ServiceCheck = Callable[[ir.ServiceDefinition], list[CompositionError]]
CompositionCheck = Callable[[CompositionState], list[CompositionError]]

PRE_COMPOSITION_CHECKS: tuple[ServiceCheck, ...] = (
    check_external_used_on_base,
    check_duplicate_enum_or_scalar,
)

POST_COMPOSITION_CHECKS: tuple[CompositionCheck, ...] = (
    check_enums_for_matches,
    check_external_unused,
    check_external_missing_on_base,
    check_field_ownership_conflicts,
    check_dependency_selections,
)


def validate_services(services: list[ir.ServiceDefinition]) -> list[CompositionError]:
    """
    Run the pre-composition checks on every raw service document.

    Errors are ordered by service, then by check.

    Args:
        services: Services in caller order

    Returns:
        All errors found, concatenated
    """
    all_errors: list[CompositionError] = []

    for service in services:
        for check in PRE_COMPOSITION_CHECKS:
            all_errors.extend(check(service))

    return all_errors


def validate_composition(state: CompositionState) -> list[CompositionError]:
    """
    Run the post-composition checks against the merged maps and schema.

    Checks are independent: each sees the same state, none stops the others,
    and their results are concatenated in check order.

    Args:
        state: Merged maps plus the composed schema

    Returns:
        All errors found, concatenated
    """
    all_errors: list[CompositionError] = []

    for check in POST_COMPOSITION_CHECKS:
        all_errors.extend(check(state))

    return all_errors
