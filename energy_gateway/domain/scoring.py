"""Performance scoring - combines balance aggregates into a bounded score"""

from energy_gateway.domain.aggregates import round_half_up

MAX_SCORE = 100
NET_FLOW_CAP = 40
CONSISTENCY_WEIGHT = 30
GROWTH_CAP = 30


def net_flow_component(net_flow: float) -> float:
    """10 points per 1000 of positive net flow, capped at 40"""
    if net_flow > 0:
        return min(NET_FLOW_CAP, (net_flow / 1000) * 10)
    return 0.0


def consistency_component(yield_consistency: float) -> float:
    """Scaled onto 30 points; negative consistency pulls the score down"""
    return (yield_consistency / 100) * CONSISTENCY_WEIGHT


def growth_component(yield_growth_rate: float) -> float:
    """3 points per percent of positive yield growth, capped at 30"""
    if yield_growth_rate > 0:
        return min(GROWTH_CAP, yield_growth_rate * 3)
    return 0.0


def calculate_performance_score(net_flow: float, yield_consistency: float, yield_growth_rate: float) -> int:
    """
    Calculate overall financial performance from 0 (worst) to 100 (best).

    Scoring weights:
    - up to 40: positive net flow
    - up to 30: yield consistency
    - up to 30: yield growth

    The sum is capped at 100, floored at 0, then rounded half-up.
    """
    score = (
        net_flow_component(net_flow)
        + consistency_component(yield_consistency)
        + growth_component(yield_growth_rate)
    )

    return int(round_half_up(max(0, min(MAX_SCORE, score))))
