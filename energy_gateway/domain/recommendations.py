"""Advisory messages derived from balance analytics"""

from typing import List
from energy_gateway.domain.models import Recommendation

GROWTH_THRESHOLD = 5.0
CONSISTENCY_THRESHOLD = 70.0


def generate_recommendations(net_flow: float, yield_growth_rate: float, yield_consistency: float) -> List[Recommendation]:
    """Checks run in a fixed order: net flow, then growth, then consistency"""
    recommendations = []

    if net_flow < 0:
        recommendations.append(
            Recommendation(
                type="warning",
                title="Negative cash flow",
                message="Consider reducing expenses or increasing profitable investments",
            )
        )

    if yield_growth_rate < GROWTH_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="suggestion",
                title="Optimize yields",
                message="Look for higher-yield products to maximize earnings",
            )
        )

    if yield_consistency < CONSISTENCY_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="tip",
                title="Diversify portfolio",
                message="Consider diversifying to obtain more consistent yields",
            )
        )

    return recommendations
