"""
Resolution policies.

Every heuristic the resolvers rely on is named here so a run is
deterministic and auditable instead of depending on incidental row order.

Example retailnorm.yaml fragment:
    policy:
      country_tie_break: first_seen
      description_tie_break: lexical
      product_order: stock_code
      on_unmapped_country: error
"""

from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict

TieBreak = Literal["first_seen", "last_seen"]
DescriptionTieBreak = Literal["first_seen", "lexical"]
ProductOrder = Literal["first_seen", "stock_code"]
UnmappedCountryAction = Literal["warn", "error"]


class ResolutionPolicy(BaseModel):
    """
    Tie-break and failure policies applied while resolving entities.

    Attributes:
        country_tie_break: Which record wins when several transactions of a
            customer share the latest timestamp, by source row order.
        description_tie_break: How to choose between equally frequent
            descriptions of a stock code.
        product_order: Order in which ProductID values are assigned.
        on_unmapped_country: Whether a missing customer id in a country with
            no sentinel logs a warning or raises.
    """

    country_tie_break: TieBreak = "first_seen"
    description_tie_break: DescriptionTieBreak = "first_seen"
    product_order: ProductOrder = "first_seen"
    on_unmapped_country: UnmappedCountryAction = "warn"

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")
