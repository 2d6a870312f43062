"""
Live Binding - The parameters a bound pin is evaluated from

A binding stores *parameters* (control layer name, chain, link index), never
generated code. Each evaluation reads the control layer's current values, so
editing the control layer changes the live motion immediately.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from .chain import Chain
from .motion import MotionModel
from .utils import Vec2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveBinding:
    control_name: str
    chain: Chain
    link_index: int

    @property
    def link(self):
        return self.chain[self.link_index]

    def evaluate(self, document, t: float, base_value: Vec2) -> Vec2:
        """
        Value of the bound property at ``t``.

        Args:
            document: Host document supplying control parameters and frame rate
            t: Time in seconds
            base_value: The property's own (upstream) value at ``t``
        """
        params = document.control_params(self.control_name)
        if params is None:
            logger.warning("Control layer '%s' is missing; using the unbound value", self.control_name)
            return base_value
        model = MotionModel(self.chain, self.link_index, document.frame_rate)
        return model.value_at(t, params, base_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'control': self.control_name,
            'link': self.link_index,
            'chain': self.chain.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LiveBinding':
        return cls(
            control_name=str(data['control']),
            chain=Chain.from_dict(data['chain']),
            link_index=int(data['link']),
        )
