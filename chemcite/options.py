"""Mode flags passed explicitly to every parse call."""

from __future__ import annotations

from dataclasses import dataclass

from .messages import Language


@dataclass(frozen=True)
class ParseOptions:
    """Recognized options for the parsing pipelines.

    Attributes:
        strict: Enable the strict grammar variants and strict format checks
        auto_fix_j: Enforce coupling constants on J-carrying multiplets and
            snap them to the spectrometer's digital resolution
        general_multiplet: Only treat basic first-order multiplets as
            J-carrying; report everything else as a general multiplet (m)
        language: Language of annotation messages

    """

    strict: bool = True
    auto_fix_j: bool = True
    general_multiplet: bool = False
    language: Language = Language.ENGLISH

    @classmethod
    def from_config(cls, config: dict) -> ParseOptions:
        """Build options from a loaded config dict (see ``cli.load_config``)."""
        parsing = config.get('parsing', {})
        output = config.get('output', {})
        return cls(
            strict=bool(parsing.get('strict', True)),
            auto_fix_j=bool(parsing.get('auto_fix_j', True)),
            general_multiplet=bool(parsing.get('general_multiplet', False)),
            language=Language.parse(output.get('language', 'english')),
        )
