"""
Budget optimization and allocation logic for the Smart Budget Wizard.

This module splits a total advertising budget across ad methods, weighting
channels by historical ROI while guaranteeing every channel a minimum share,
and projects the return of optimal or manually chosen allocations.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from models.data_models import (
    AdMethod, AllocationResult, BudgetAllocation, BudgetChannel, Business, Campaign
)
from .roi_calculator import calculate_roi, campaign_roi

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


ChannelMultiplierRule = Callable[[Optional[Business], BudgetChannel], float]

# (business type, channel name keyword, weight multiplier)
DEFAULT_MULTIPLIER_RULES: List[Tuple[str, str, float]] = [
    ("Retail", "Social", 1.2),
    ("Restaurant", "Local", 1.3),
]


def make_multiplier_rule(rules: List[Tuple[str, str, float]]) -> ChannelMultiplierRule:
    """
    Build a channel multiplier rule from a table of patterns.

    The first pattern whose business type equals the business's type and
    whose keyword appears in the channel name wins.

    Args:
        rules: List of (business_type, channel_keyword, multiplier)

    Returns:
        Callable mapping (business, channel) to a weight multiplier
    """
    def rule(business: Optional[Business], channel: BudgetChannel) -> float:
        if business is None or not business.business_type:
            return 1.0
        for business_type, keyword, multiplier in rules:
            if business.business_type == business_type and keyword in channel.name:
                return multiplier
        return 1.0

    return rule


default_channel_multiplier = make_multiplier_rule(DEFAULT_MULTIPLIER_RULES)


class TargetStatus(Enum):
    """How a projected ROI compares with the user's target."""
    EXCEEDS = "exceeds"
    MEETS = "meets"
    BELOW = "below"


@dataclass
class TargetComparison:
    """Projected ROI measured against a target ROI."""
    status: TargetStatus
    difference: float  # projected - target, in percentage points


class BudgetOptimizer:
    """
    Handles budget allocation across ad methods.

    Weights channels by historical ROI, applies business-specific
    multipliers, and normalizes to percentages that sum to 100 while
    respecting a per-channel minimum.
    """

    def __init__(self, min_allocation_percentage: float = 5.0,
                 multiplier_rule: Optional[ChannelMultiplierRule] = None):
        """
        Initialize the budget optimizer.

        Args:
            min_allocation_percentage: Floor percentage every channel receives
            multiplier_rule: Optional (business, channel) -> multiplier function
        """
        if min_allocation_percentage < 0:
            raise ValueError("Minimum allocation percentage cannot be negative")

        self.min_allocation_percentage = min_allocation_percentage
        self.multiplier_rule = multiplier_rule or default_channel_multiplier
        self.floor_weight = 0.1  # Weight given to channels with zero or negative ROI
        self.target_exceed_factor = 1.1

    def compute_optimal_allocation(self,
                                   total_budget: float,
                                   channels: List[BudgetChannel],
                                   business: Optional[Business] = None) -> AllocationResult:
        """
        Compute a suggested per-channel spend split.

        Args:
            total_budget: Total budget to allocate, must be positive
            channels: Channels with their historical ROI
            business: Optional business used by the multiplier rule

        Returns:
            AllocationResult sorted by amount descending

        Raises:
            ValueError: If total_budget is not positive
        """
        if total_budget is None or total_budget <= 0:
            raise ValueError(f"Total budget must be positive, got {total_budget}")

        try:
            logger.info(f"Optimizing ${total_budget:,.2f} across {len(channels)} channels")

            if not channels:
                return AllocationResult(
                    allocations=[],
                    total_budget=total_budget,
                    total_projected_return=0.0,
                    projected_total_roi=0.0,
                    strategy_notes="No advertising channels available for allocation."
                )

            weights = self._calculate_channel_weights(channels, business)
            percentages = self._normalize_with_floor(weights)

            allocations = []
            for channel, percentage in zip(channels, percentages):
                amount = percentage / 100 * total_budget
                allocations.append(BudgetAllocation(
                    ad_method_id=channel.id,
                    ad_method_name=channel.name,
                    amount=amount,
                    percentage=percentage,
                    historical_roi=channel.historical_roi,
                    projected_return=self._project_return(amount, channel.historical_roi)
                ))

            allocations.sort(key=lambda a: a.amount, reverse=True)

            result = self._build_result(allocations, total_budget)
            logger.info(f"Optimization complete: projected ROI {result.projected_total_roi:.1f}%")
            return result

        except Exception as e:
            logger.error(f"Error optimizing budget allocation: {str(e)}")
            raise

    def compute_manual_allocation(self,
                                  amounts_by_method: Dict[int, float],
                                  channels: List[BudgetChannel]) -> AllocationResult:
        """
        Project the outcome of user-chosen dollar amounts.

        Percentages are relative to the total amount allocated.

        Args:
            amounts_by_method: Ad method id -> dollar amount
            channels: Channels with their historical ROI

        Returns:
            AllocationResult sorted by amount descending

        Raises:
            ValueError: If any amount is negative
        """
        negative = [method_id for method_id, amount in amounts_by_method.items() if amount < 0]
        if negative:
            raise ValueError(f"Allocation amounts cannot be negative (ad methods {negative})")

        total_allocated = sum(amounts_by_method.get(channel.id, 0.0) for channel in channels)

        allocations = []
        for channel in channels:
            amount = amounts_by_method.get(channel.id, 0.0)
            percentage = amount / total_allocated * 100 if total_allocated > 0 else 0.0
            allocations.append(BudgetAllocation(
                ad_method_id=channel.id,
                ad_method_name=channel.name,
                amount=amount,
                percentage=percentage,
                historical_roi=channel.historical_roi,
                projected_return=self._project_return(amount, channel.historical_roi)
            ))

        allocations.sort(key=lambda a: a.amount, reverse=True)
        return self._build_result(allocations, total_allocated, manual=True)

    def equal_split(self, total_budget: float, channels: List[BudgetChannel]) -> Dict[int, float]:
        """Starting point for manual mode: the budget divided evenly."""
        if not channels:
            return {}
        share = total_budget / len(channels)
        return {channel.id: share for channel in channels}

    def historical_roi_by_method(self, campaigns: List[Campaign],
                                 ad_methods: List[AdMethod]) -> List[BudgetChannel]:
        """
        Build budget channels from each ad method's mean campaign ROI.

        Args:
            campaigns: The business's campaigns
            ad_methods: All ad methods eligible for allocation

        Returns:
            One BudgetChannel per ad method; ROI is 0 when a method has no campaigns
        """
        roi_values: Dict[int, List[float]] = {}
        for campaign in campaigns:
            roi_values.setdefault(campaign.ad_method_id, []).append(campaign_roi(campaign))

        channels = []
        for method in ad_methods:
            values = roi_values.get(method.id, [])
            historical_roi = sum(values) / len(values) if values else 0.0
            channels.append(BudgetChannel(id=method.id, name=method.name, historical_roi=historical_roi))

        return channels

    def compare_to_target(self, projected_roi: float, target_roi: float) -> TargetComparison:
        """Compare a projected ROI with the target set in the wizard."""
        difference = projected_roi - target_roi
        if projected_roi > target_roi * self.target_exceed_factor:
            status = TargetStatus.EXCEEDS
        elif projected_roi >= target_roi:
            status = TargetStatus.MEETS
        else:
            status = TargetStatus.BELOW
        return TargetComparison(status=status, difference=difference)

    def _calculate_channel_weights(self, channels: List[BudgetChannel],
                                   business: Optional[Business]) -> List[float]:
        """
        Weight each channel by historical ROI and business multiplier.

        Args:
            channels: Channels to weight
            business: Business passed to the multiplier rule

        Returns:
            Positive weights in channel order
        """
        weights = []
        for channel in channels:
            weight = channel.historical_roi * self.multiplier_rule(business, channel)
            weights.append(max(self.floor_weight, weight))
        return weights

    def _normalize_with_floor(self, weights: List[float]) -> List[float]:
        """
        Convert weights to percentages summing to 100 with a per-channel floor.

        Channels whose proportional share falls under the floor are pinned at
        the floor and the remainder is redistributed over the other channels
        by weight, repeating until every free share clears the floor.

        Args:
            weights: Positive channel weights

        Returns:
            Percentages in the same order as weights
        """
        count = len(weights)
        floor = min(self.min_allocation_percentage, 100.0 / count)
        pinned = set()

        while True:
            free = [i for i in range(count) if i not in pinned]
            remaining = 100.0 - floor * len(pinned)
            free_weight = sum(weights[i] for i in free)
            shares = {i: remaining * weights[i] / free_weight for i in free}

            below_floor = [i for i in free if shares[i] < floor]
            if not below_floor:
                break
            pinned.update(below_floor)

        return [floor if i in pinned else shares[i] for i in range(count)]

    def _project_return(self, amount: float, historical_roi: float) -> float:
        return amount * (1 + historical_roi / 100)

    def _build_result(self, allocations: List[BudgetAllocation], total_budget: float,
                      manual: bool = False) -> AllocationResult:
        total_return = sum(a.projected_return for a in allocations)
        projected_roi = calculate_roi(total_return, total_budget)

        return AllocationResult(
            allocations=allocations,
            total_budget=total_budget,
            total_projected_return=total_return,
            projected_total_roi=projected_roi,
            strategy_notes=self._generate_strategy_notes(allocations, projected_roi, manual)
        )

    def _generate_strategy_notes(self, allocations: List[BudgetAllocation],
                                 projected_roi: float, manual: bool) -> str:
        """Explain the allocation in one or two sentences."""
        if not allocations:
            return "No advertising channels available for allocation."

        if manual:
            notes = f"Manual allocation across {len(allocations)} ad methods."
        else:
            top = allocations[0]
            notes = (
                f"Performance-weighted allocation across {len(allocations)} ad methods. "
                f"{top.ad_method_name} receives the largest share ({top.percentage:.1f}%) "
                f"based on {top.historical_roi:.1f}% historical ROI."
            )

        untested = [a.ad_method_name for a in allocations if a.historical_roi == 0]
        if untested and not manual:
            notes += f" Untested channels kept at the minimum share: {', '.join(untested)}."

        return notes
