from typing import Dict, Iterable, List

from app.services.color_palette import Color, LabelEntry, LabelTable


class LegendBuilder:
    """Maps the label indices observed in an image to their display colors."""

    def entries(self, indices: Iterable[int], table: LabelTable) -> List[LabelEntry]:
        return [table.entry_for(index) for index in sorted(set(indices))]

    def legend(self, indices: Iterable[int], table: LabelTable) -> Dict[str, Color]:
        """Ordered name -> color mapping, in ascending label index order."""
        return {entry.name: entry.color for entry in self.entries(indices, table)}


legend_builder = LegendBuilder()
