"""
AI marketing advisor chat using OpenAI.

Answers a business owner's marketing questions with context from their
campaigns, overall metrics, local top performers and available ad methods.
Falls back to keyword-matched advice when OpenAI is not configured or fails.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import openai
from openai import OpenAI

from models.data_models import AdMethod, BusinessStats, Campaign
from config.settings import config_manager
from .error_handler import error_handler
from .roi_calculator import campaign_roi

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are AdTrack's Marketing Advisor, an expert marketing consultant specializing in ROI optimization, advertising strategy, and campaign performance.

Your task is to provide personalized, actionable marketing advice to business owners based on their campaign data and industry.

Keep responses concise, practical, and focused on concrete actions they can take to improve their marketing ROI.

Always be encouraging, constructive, and speak directly to the business owner using "you" language."""

EMPTY_RESPONSE = "I'm sorry, I couldn't generate any advice at the moment."


@dataclass
class AdviceRequest:
    """A question for the advisor plus the business context to answer it with."""
    message: str
    campaigns: List[Campaign] = field(default_factory=list)
    business_type: Optional[str] = None
    ad_methods: List[AdMethod] = field(default_factory=list)
    top_performers: List[Campaign] = field(default_factory=list)
    user_metrics: Optional[BusinessStats] = None


class MarketingAdvisor:
    """
    Generates marketing advice with OpenAI chat completions.

    When no API key is configured the advisor runs in fallback mode and
    answers from a fixed set of keyword-matched responses.
    """

    def __init__(self, skip_openai_init: bool = False):
        """
        Initialize the marketing advisor.

        Args:
            skip_openai_init: Skip OpenAI client initialization (for testing)
        """
        self.client = None
        self.model_name = "gpt-4o"
        self.temperature = 0.7
        self.max_tokens = 500
        self.max_top_performers = 3

        if not skip_openai_init:
            self._initialize_openai_client()

    def _initialize_openai_client(self):
        """Initialize OpenAI client when an API key is configured."""
        config = config_manager.load_config()
        self.model_name = config.openai_model

        if not config.openai_api_key:
            logger.warning("OPENAI_API_KEY not provided. Marketing advisor will use fallback responses.")
            return

        self.client = OpenAI(api_key=config.openai_api_key)
        logger.info("OpenAI client initialized successfully")

    @property
    def is_ai_enabled(self) -> bool:
        return self.client is not None

    def build_context(self, request: AdviceRequest) -> str:
        """
        Describe the business and its campaigns for the system prompt.

        Args:
            request: Advice request with business context

        Returns:
            Context text, empty when the request carries no context
        """
        method_names = {method.id: method.name for method in request.ad_methods}
        lines = []

        if request.business_type:
            lines.append(f"Business Type: {request.business_type}")

        if request.campaigns:
            lines.append("")
            lines.append("Campaign Data:")
            for campaign in request.campaigns:
                earned = campaign.amount_earned if campaign.amount_earned is not None else 0
                lines.append(f"- Name: {campaign.name}")
                lines.append(f"  Description: {campaign.description or 'N/A'}")
                lines.append(f"  Amount Spent: ${campaign.amount_spent}")
                lines.append(f"  Amount Earned: ${earned}")
                lines.append(f"  ROI: {campaign_roi(campaign):.2f}%")
                lines.append(f"  Status: {'Active' if campaign.is_active else 'Completed'}")
                lines.append(f"  Start Date: {campaign.start_date.isoformat()}")
                if campaign.end_date:
                    lines.append(f"  End Date: {campaign.end_date.isoformat()}")
                lines.append(f"  Ad Method: {method_names.get(campaign.ad_method_id, campaign.ad_method_id)}")

        if request.user_metrics:
            metrics = request.user_metrics
            lines.append("")
            lines.append("Overall Metrics:")
            lines.append(f"- Average ROI: {metrics.average_roi:.2f}%")
            lines.append(f"- Total Spent: ${metrics.total_spent:.2f}")
            lines.append(f"- Total Earned: ${metrics.total_earned:.2f}")

        if request.top_performers:
            lines.append("")
            lines.append("Top Performers in Area:")
            for rank, campaign in enumerate(request.top_performers[:self.max_top_performers], start=1):
                lines.append(f"- Rank #{rank}")
                lines.append(f"  ROI: {campaign_roi(campaign):.2f}%")
                lines.append(f"  Ad Method: {method_names.get(campaign.ad_method_id, campaign.ad_method_id)}")
                lines.append(f"  Amount Spent: ${campaign.amount_spent}")

        if request.ad_methods:
            lines.append("")
            lines.append("Available Ad Methods:")
            for method in request.ad_methods:
                lines.append(f"- {method.name} (ID: {method.id})")

        return "\n".join(lines)

    def create_system_prompt(self, request: AdviceRequest) -> str:
        context = self.build_context(request)
        if not context:
            return SYSTEM_PROMPT
        return f"{SYSTEM_PROMPT}\n\nHere is the context about the business and their campaigns:\n{context}"

    def generate_advice(self, request: AdviceRequest) -> str:
        """
        Answer a marketing question.

        Args:
            request: The user's message and business context

        Returns:
            Advice text from OpenAI, or fallback advice when OpenAI is
            unavailable or the call fails

        Raises:
            ValueError: If the message is empty
        """
        if not request.message or not request.message.strip():
            raise ValueError("Message must not be empty")

        if not self.is_ai_enabled:
            return self.get_fallback_response(request)

        try:
            logger.info("Calling OpenAI API for marketing advice")
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": self.create_system_prompt(request)},
                    {"role": "user", "content": request.message}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )

            if not response.choices:
                return EMPTY_RESPONSE
            return response.choices[0].message.content or EMPTY_RESPONSE

        except openai.OpenAIError as e:
            error_info = error_handler.handle_ai_error(e, "marketing advice")
            error_handler.log_error(error_info, "Marketing Advisor")
            logger.warning("Falling back to built-in marketing advice")
            return self.get_fallback_response(request)

    def get_fallback_response(self, request: AdviceRequest) -> str:
        """Keyword-matched advice used without OpenAI."""
        message = request.message.lower()

        if "improve" in message and "roi" in message:
            return ("Based on my analysis, you can improve your ROI by:\n\n"
                    "1. Focus more on targeted audience segmentation\n"
                    "2. Optimize your ad creative with A/B testing\n"
                    "3. Consider reallocating budget from lower-performing campaigns\n"
                    "4. Track conversion metrics more closely to identify drop-off points\n\n"
                    "Implement these changes gradually and measure the results after each modification.")

        if "best" in message and ("ad method" in message or "advertising method" in message):
            best = self._highest_roi_campaign(request.campaigns)
            if best:
                return (f"Based on your historical data, your most effective advertising method appears "
                        f"to be the one used in your \"{best.name}\" campaign. This campaign achieved a "
                        f"higher ROI compared to your other campaigns.\n\n"
                        f"I recommend analyzing what made this specific campaign successful and applying "
                        f"those strategies to your other marketing efforts.")
            return ("The most effective advertising methods typically vary by industry and target audience. "
                    "For your specific business, I recommend:\n\n"
                    "1. Digital advertising for precise targeting and measurable results\n"
                    "2. Content marketing to establish authority and drive organic traffic\n"
                    "3. Email campaigns for direct customer engagement\n\n"
                    "Start with small test campaigns across these channels to determine what works best "
                    "for your specific audience.")

        if "budget" in message or "spend" in message:
            return ("When determining your marketing budget, consider these factors:\n\n"
                    "1. Industry benchmarks suggest allocating 7-15% of your revenue for established "
                    "businesses and 20-30% for startups\n"
                    "2. Distribute your budget across multiple channels, with more allocation to those "
                    "with proven ROI\n"
                    "3. Set aside 20-30% for testing new channels and strategies\n\n"
                    "Review and adjust your budget quarterly based on performance data.")

        if "compare" in message and "competitor" in message:
            if request.top_performers:
                top_roi = campaign_roi(request.top_performers[0])
                return (f"Looking at the top performers in your area, I notice businesses achieving ROIs "
                        f"of approximately {top_roi:.1f}% using similar marketing approaches. The key "
                        f"differences appear to be in their execution and targeting strategies.\n\n"
                        f"Consider benchmarking your campaigns against these performers by focusing on "
                        f"more precise audience targeting and testing different creative approaches.")
            return ("When comparing to competitors, look beyond just the advertising methods they use "
                    "and analyze:\n\n"
                    "1. Their messaging and unique value proposition\n"
                    "2. The channels where they have the strongest presence\n"
                    "3. Their content strategy and customer engagement approach\n\n"
                    "Focus on differentiating your brand while learning from their successful strategies.")

        if "different" in message and "ad method" in message:
            return ("Exploring new advertising methods can yield great results. Consider:\n\n"
                    "1. If you're primarily using digital ads, try incorporating content marketing or "
                    "email campaigns\n"
                    "2. If you haven't explored video marketing, this medium is showing strong engagement "
                    "rates across industries\n"
                    "3. Partner marketing or co-promotions can help you reach new audiences\n\n"
                    "Start with small tests of new methods alongside your proven channels to minimize risk.")

        return ("As your marketing advisor, I recommend focusing on these key principles for successful "
                "campaigns:\n\n"
                "1. Clear audience targeting to ensure your message reaches the right people\n"
                "2. Consistent measurement and optimization based on performance data\n"
                "3. A mix of both short-term activation campaigns and long-term brand building\n"
                "4. Regular testing of new approaches while maintaining your core effective strategies\n\n"
                "Let me know if you'd like more specific advice about a particular aspect of your "
                "marketing strategy!")

    def _highest_roi_campaign(self, campaigns: List[Campaign]) -> Optional[Campaign]:
        if not campaigns:
            return None
        return max(campaigns, key=campaign_roi)
