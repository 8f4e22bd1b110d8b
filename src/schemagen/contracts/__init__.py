from .base import (
    ContractDescriptor,
    ContractKind,
    ContractResolver,
    ContractResolverSettings,
    MemberDescriptor,
    camel_case,
)
from .default import DefaultContractResolver

__all__ = [
    "ContractDescriptor",
    "ContractKind",
    "ContractResolver",
    "ContractResolverSettings",
    "DefaultContractResolver",
    "MemberDescriptor",
    "camel_case",
]
