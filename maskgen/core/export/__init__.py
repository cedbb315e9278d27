"""Export module for maskgen - converts resolved IR to JSON cards."""

from maskgen.core.export.card_exporter import export_mask_cards

__all__ = ["export_mask_cards"]
