"""Risk priority numbers.

RPN = severity ordinal x likelihood ordinal. The ordinals are deployment
configuration (``RPN_SEVERITY_SCALE`` / ``RPN_LIKELIHOOD_SCALE``); there is no
built-in table.
"""
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from safeops.core.exceptions import ConfigurationError, ValidationError
from safeops.models.enums import Likelihood, Severity


@dataclass(frozen=True)
class RpnScale:
    severity: Dict[str, int]
    likelihood: Dict[str, int]

    @classmethod
    def from_mappings(cls, severity: Mapping[str, int], likelihood: Mapping[str, int]) -> "RpnScale":
        severity = {str(k): int(v) for k, v in severity.items()}
        likelihood = {str(k): int(v) for k, v in likelihood.items()}
        missing = [m.value for m in Severity if m.value not in severity]
        missing += [m.value for m in Likelihood if m.value not in likelihood]
        if missing:
            raise ConfigurationError(f"RPN scale has no value for: {', '.join(missing)}")
        return cls(severity=severity, likelihood=likelihood)

    @classmethod
    def from_settings(cls, settings) -> Optional["RpnScale"]:
        if settings.RPN_SEVERITY_SCALE is None and settings.RPN_LIKELIHOOD_SCALE is None:
            return None
        if settings.RPN_SEVERITY_SCALE is None or settings.RPN_LIKELIHOOD_SCALE is None:
            raise ConfigurationError("set both RPN_SEVERITY_SCALE and RPN_LIKELIHOOD_SCALE")
        return cls.from_mappings(settings.RPN_SEVERITY_SCALE, settings.RPN_LIKELIHOOD_SCALE)


def rpn(severity, likelihood, scale: Optional[RpnScale]) -> int:
    if scale is None:
        raise ConfigurationError("no RPN scale configured (RPN_SEVERITY_SCALE / RPN_LIKELIHOOD_SCALE)")
    sev = severity.value if isinstance(severity, Severity) else severity
    lik = likelihood.value if isinstance(likelihood, Likelihood) else likelihood
    try:
        return scale.severity[sev] * scale.likelihood[lik]
    except KeyError as exc:
        raise ValidationError(f"unknown severity/likelihood value {exc.args[0]!r}") from None
