from methodreg.core.conversion import DEFAULT_CONVERSIONS, ConversionPolicy
from methodreg.core.method_entry import MethodEntry
from methodreg.core.registry import Registry
from methodreg.core.utils import OverwritePolicy, format_signature, qualified_name

__all__ = [
    "ConversionPolicy",
    "DEFAULT_CONVERSIONS",
    "MethodEntry",
    "OverwritePolicy",
    "Registry",
    "format_signature",
    "qualified_name",
]
