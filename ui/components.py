"""
UI components for the AdTrack analytics application.

Each panel fetches its own data through the DataManager and renders its own
error state, so one failing panel never blocks the others.
"""

import streamlit as st
from typing import Dict, List, Optional
import logging
import pandas as pd
import plotly.express as px

from data.manager import DataManager
from data.parsers import CampaignFileParser
from config.settings import config_manager
from models.data_models import (
    AllocationResult, BudgetChannel, Business, BusinessUsage, Campaign, TimeFrame, UsageFilterCriteria
)
from business_logic.error_handler import error_handler, ErrorInfo
from business_logic.budget_optimizer import BudgetOptimizer, TargetStatus
from business_logic.form_validator import form_validator, ValidationResult
from business_logic.marketing_advisor import AdviceRequest, MarketingAdvisor
from business_logic.performance_comparator import (
    ad_method_performance, best_performing_method, filter_campaigns, normalize_campaigns
)
from business_logic.report_exporter import (
    allocation_csv, analytics_csv, export_allocation_json, export_filename, format_currency, share_links,
    share_text
)
from business_logic.roi_calculator import (
    business_stats, campaign_roi, monthly_performance, roi_by_ad_method, roi_ranking
)
from business_logic.usage_analytics import (
    CATEGORY_KEYS, DrillDown, TOP_BUSINESS_LIMITS, UsageIndex, filter_businesses, filter_category,
    format_month_rows, summarize, top_businesses
)

logger = logging.getLogger(__name__)

ANALYTICS_TABS = {
    'by_state': "By State",
    'by_city': "By City",
    'by_business_type': "By Business Type",
    'by_year': "By Year",
    'by_month': "By Month",
    'by_feature': "By Feature",
    'top_businesses': "Top Businesses",
}

# Use the inverted index once the business list is this large
USAGE_INDEX_THRESHOLD = 1000


def display_panel_error(error_info: ErrorInfo):
    """
    Show a failed panel load inline.

    Args:
        error_info: Classified error for the panel
    """
    notification = error_handler.create_user_notification(error_info)
    message = f"**{notification['title']}**: {notification['message']}"

    if notification['type'] == 'warning':
        st.warning(f"⚠️ {message}")
    elif notification['type'] == 'info':
        st.info(message)
    else:
        st.error(f"❌ {message}")

    if notification.get('action'):
        st.caption(notification['action'])


def display_validation_errors(result: ValidationResult):
    """Show form validation issues next to the form."""
    for issue in result.errors:
        st.error(f"• {issue.message}")
    for issue in result.warnings:
        st.warning(f"• {issue.message}")


def display_amount(value: float) -> str:
    """Amount in the configured currency with cents."""
    return format_currency(value, config_manager.load_config().default_currency, decimals=2)


def campaigns_dataframe(campaigns: List[Campaign], ad_method_names: Dict[int, str]) -> pd.DataFrame:
    """Campaign table with derived ROI."""
    rows = []
    for campaign in campaigns:
        rows.append({
            'Campaign': campaign.name,
            'Ad Method': ad_method_names.get(campaign.ad_method_id, "Unknown"),
            'Status': campaign.status.value.title(),
            'Start': campaign.start_date,
            'End': campaign.end_date,
            'Spent': float(campaign.amount_spent),
            'Earned': float(campaign.amount_earned) if campaign.amount_earned is not None else None,
            'ROI %': round(campaign_roi(campaign), 1)
        })
    return pd.DataFrame(rows)


def allocation_dataframe(result: AllocationResult) -> pd.DataFrame:
    """Allocation table for display and charts."""
    return pd.DataFrame([
        {
            'Ad Method': a.ad_method_name,
            'Amount': round(a.amount, 2),
            'Percentage': round(a.percentage, 1),
            'Historical ROI': round(a.historical_roi, 1),
            'Projected Return': round(a.projected_return, 2)
        }
        for a in result.allocations
    ])


class DashboardPanel:
    """
    Business dashboard with quick stats, ROI by ad method, monthly trend
    and ROI ranking against local competitors.
    """

    def __init__(self, data_manager: DataManager, business_id: int, share_page_url: str = ""):
        self.data_manager = data_manager
        self.business_id = business_id
        self.share_page_url = share_page_url

    def render(self):
        st.subheader("📊 Dashboard")

        result = self.data_manager.load_panel(
            lambda: (self.data_manager.get_business_campaigns(self.business_id),
                     self.data_manager.get_ad_methods()),
            "dashboard"
        )
        if not result.ok:
            display_panel_error(result.error)
            return

        campaigns, ad_methods = result.data
        if not campaigns:
            st.info("No campaigns yet. Add a campaign to see your ROI.")
            return

        self._render_quick_stats(campaigns)

        col1, col2 = st.columns(2)
        with col1:
            self._render_roi_by_method(campaigns, ad_methods)
        with col2:
            self._render_monthly_trend(campaigns)

        self._render_ranking(campaigns)

        st.write("**Campaigns**")
        method_names = {method.id: method.name for method in ad_methods}
        st.dataframe(campaigns_dataframe(campaigns, method_names), use_container_width=True, hide_index=True)

        with st.expander("📣 Share a campaign"):
            campaign_by_id = {c.id: c for c in campaigns}
            campaign_id = st.selectbox("Campaign", list(campaign_by_id),
                                       format_func=lambda i: campaign_by_id[i].name)
            business = self.data_manager.load_panel(
                lambda: self.data_manager.get_business(self.business_id), "share"
            )
            ShareComponent(self.share_page_url).render(campaign_by_id[campaign_id],
                                                       business.data if business.ok else None)

    def _render_quick_stats(self, campaigns: List[Campaign]):
        stats = business_stats(campaigns)
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Active Campaigns", stats.active_campaigns)
        col2.metric("Average ROI", f"{stats.average_roi:.1f}%")
        col3.metric("Total Spent", display_amount(stats.total_spent))
        col4.metric("Total Earned", display_amount(stats.total_earned))

    def _render_roi_by_method(self, campaigns: List[Campaign], ad_methods):
        rows = roi_by_ad_method(campaigns, ad_methods)
        df = pd.DataFrame(rows)
        fig = px.bar(df, x='ad_method_name', y='roi', title="ROI by Ad Method",
                     labels={'ad_method_name': 'Ad Method', 'roi': 'ROI (%)'},
                     color='roi', color_continuous_scale='Blues')
        st.plotly_chart(fig, use_container_width=True)

    def _render_monthly_trend(self, campaigns: List[Campaign]):
        df = pd.DataFrame(monthly_performance(campaigns))
        fig = px.line(df, x='display_month', y='roi', markers=True, title="Monthly ROI Trend",
                      labels={'display_month': 'Month', 'roi': 'ROI (%)'})
        st.plotly_chart(fig, use_container_width=True)

    def _render_ranking(self, campaigns: List[Campaign]):
        result = self.data_manager.load_panel(
            lambda: (self.data_manager.get_business(self.business_id),
                     self.data_manager.get_top_performers()),
            "ROI ranking"
        )
        if not result.ok:
            display_panel_error(result.error)
            return

        business, (top_campaigns, _, _) = result.data
        own_roi = business_stats(campaigns).average_roi

        competitor_rois: Dict[int, List[float]] = {}
        for campaign in top_campaigns:
            if campaign.business_id != business.id:
                competitor_rois.setdefault(campaign.business_id, []).append(campaign_roi(campaign))

        averages = [sum(values) / len(values) for values in competitor_rois.values()]
        ranking = roi_ranking(own_roi, averages)

        st.metric("Your ROI Rank", f"#{ranking['rank']} of {ranking['total']}",
                  help="Compared with anonymized local businesses")
        st.progress(min(int(ranking['percentile']), 100),
                    text=f"Better than or equal to {ranking['percentile']:.0f}% of businesses")


class BudgetWizardComponent:
    """
    Smart Budget Wizard: collects a budget and target ROI, then suggests an
    optimal split across ad methods or projects a manual split.
    """

    def __init__(self, data_manager: DataManager, business_id: int,
                 optimizer: Optional[BudgetOptimizer] = None):
        self.data_manager = data_manager
        self.business_id = business_id
        self.optimizer = optimizer or BudgetOptimizer(
            min_allocation_percentage=config_manager.get_min_allocation_percentage()
        )

    def render(self):
        st.subheader("🧙 Smart Budget Wizard")

        result = self.data_manager.load_panel(
            lambda: (self.data_manager.get_business(self.business_id),
                     self.data_manager.get_business_campaigns(self.business_id),
                     self.data_manager.get_ad_methods()),
            "budget wizard"
        )
        if not result.ok:
            display_panel_error(result.error)
            return

        business, campaigns, ad_methods = result.data
        channels = self.optimizer.historical_roi_by_method(campaigns, ad_methods)

        with st.form("budget_wizard_form", clear_on_submit=False):
            col1, col2 = st.columns(2)
            with col1:
                total_budget = st.number_input(
                    "Total Budget (USD) *", min_value=0.0,
                    value=float(st.session_state.get('wizard_budget', 1000.0)), step=100.0
                )
            with col2:
                target_roi = st.number_input(
                    "Target ROI (%) *", min_value=0.0,
                    value=float(st.session_state.get('wizard_target_roi', 50.0)), step=5.0
                )
            mode = st.radio("Allocation Mode", ["Optimal", "Manual"], horizontal=True)
            submitted = st.form_submit_button("Calculate Allocation")

        if submitted:
            validation = form_validator.validate_budget_form(total_budget, target_roi)
            if not validation.is_valid:
                display_validation_errors(validation)
                return
            st.session_state['wizard_budget'] = total_budget
            st.session_state['wizard_target_roi'] = target_roi
            st.session_state['wizard_mode'] = mode

        if 'wizard_budget' not in st.session_state:
            return

        total_budget = st.session_state['wizard_budget']
        target_roi = st.session_state['wizard_target_roi']

        if st.session_state.get('wizard_mode') == "Manual":
            allocation = self._render_manual_inputs(total_budget, channels)
        else:
            allocation = self.optimizer.compute_optimal_allocation(total_budget, channels, business)

        self._render_allocation(allocation, target_roi)

    def _render_manual_inputs(self, total_budget: float, channels: List[BudgetChannel]) -> AllocationResult:
        st.write("**Set the amount for each ad method**")
        defaults = self.optimizer.equal_split(total_budget, channels)
        amounts = {}
        for channel in channels:
            amounts[channel.id] = st.number_input(
                f"{channel.name} (historical ROI {channel.historical_roi:.1f}%)",
                min_value=0.0, value=float(defaults[channel.id]), step=50.0,
                key=f"manual_amount_{channel.id}"
            )

        allocated = sum(amounts.values())
        if abs(allocated - total_budget) > 0.01:
            st.warning(f"Allocated {display_amount(allocated)} of {display_amount(total_budget)}")

        return self.optimizer.compute_manual_allocation(amounts, channels)

    def _render_allocation(self, allocation: AllocationResult, target_roi: float):
        if not allocation.allocations:
            st.info("No ad methods available to allocate budget to.")
            return

        df = allocation_dataframe(allocation)
        col1, col2 = st.columns(2)
        with col1:
            fig = px.pie(df, values='Amount', names='Ad Method', title="Suggested Budget Split")
            fig.update_traces(textposition='inside', textinfo='percent+label')
            st.plotly_chart(fig, use_container_width=True)
        with col2:
            st.metric("Projected Return", display_amount(allocation.total_projected_return))
            comparison = self.optimizer.compare_to_target(allocation.projected_total_roi, target_roi)
            st.metric("Projected ROI", f"{allocation.projected_total_roi:.1f}%",
                      delta=f"{comparison.difference:+.1f} pts vs target")
            if comparison.status == TargetStatus.EXCEEDS:
                st.success("This allocation is projected to exceed your target ROI.")
            elif comparison.status == TargetStatus.MEETS:
                st.info("This allocation is projected to meet your target ROI.")
            else:
                st.warning("This allocation is projected to fall short of your target ROI.")

        st.dataframe(df, use_container_width=True, hide_index=True)
        st.caption(allocation.strategy_notes)

        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                label="📥 Download CSV",
                data=allocation_csv(allocation).encode('utf-8'),
                file_name=export_filename("budget", "csv"),
                mime='text/csv',
                key="download_allocation_csv"
            )
        with col2:
            st.download_button(
                label="📥 Download JSON",
                data=export_allocation_json(allocation, target_roi).encode('utf-8'),
                file_name=export_filename("budget", "json"),
                mime='application/json',
                key="download_allocation_json"
            )


class FeatureUsageAnalyticsPanel:
    """
    Admin feature usage analytics: per-category tabs, a cross-category
    filter, drill-down navigation and CSV export.
    """

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    def render(self):
        st.subheader("📈 Feature Usage Analytics")

        result = self.data_manager.load_panel(self.data_manager.get_feature_usage_analytics,
                                              "feature usage analytics")
        if not result.ok:
            display_panel_error(result.error)
            return

        analytics = result.data
        top_limit = st.selectbox("Top businesses", TOP_BUSINESS_LIMITS, index=0,
                                 format_func=lambda n: f"Top {n}")

        tabs = st.tabs(list(ANALYTICS_TABS.values()))
        for tab_key, tab in zip(ANALYTICS_TABS, tabs):
            with tab:
                self._render_category_tab(analytics, tab_key, top_limit)

        usage = self.data_manager.load_panel(lambda: self.data_manager.get_business_usage(analytics),
                                             "per-business usage")
        businesses = usage.data if usage.ok else analytics.businesses

        with st.expander("Cross-Category Filter"):
            if usage.ok:
                self._render_cross_category_filter(businesses)
            else:
                display_panel_error(usage.error)

        with st.expander("Drill Down"):
            self._render_drill_down(analytics, businesses)

    def _render_category_tab(self, analytics, tab_key: str, top_limit: int):
        if tab_key == 'top_businesses':
            rows = top_businesses(analytics, top_limit)
        else:
            rows = getattr(analytics, tab_key)

        if tab_key == 'by_month':
            rows = format_month_rows(rows)
            label_key = 'label'
        else:
            label_key = CATEGORY_KEYS[tab_key]

        if tab_key not in ('by_month', 'top_businesses'):
            options = [row[label_key] for row in rows]
            selected = st.multiselect("Filter", options, key=f"filter_{tab_key}")
            rows = filter_category(rows, tab_key, selected)

        if not rows:
            st.info("No usage data for this view.")
            return

        df = pd.DataFrame(rows)
        fig = px.bar(df, x=label_key, y='count', labels={label_key: ANALYTICS_TABS[tab_key], 'count': 'Usage Count'})
        st.plotly_chart(fig, use_container_width=True)

        st.download_button(
            label="Export CSV",
            data=analytics_csv(analytics, tab_key, top_limit, rows=rows).encode('utf-8'),
            file_name=export_filename(tab_key, "csv"),
            mime='text/csv',
            key=f"export_{tab_key}"
        )

    def _render_cross_category_filter(self, businesses: List[BusinessUsage]):
        if not businesses:
            st.info("No per-business usage recorded yet.")
            return

        col1, col2, col3 = st.columns(3)
        with col1:
            states = st.multiselect("States", sorted({s for b in businesses for s in b.states}))
            cities = st.multiselect("Cities", sorted({c for b in businesses for c in b.cities}))
        with col2:
            business_types = st.multiselect("Business Types", sorted({b.business_type for b in businesses}))
            features = st.multiselect("Features", sorted({f for b in businesses for f in b.features}))
        with col3:
            years = st.multiselect("Years", sorted({y for b in businesses for y in b.years}))
            months = st.multiselect("Months", list(range(1, 13)))

        criteria = UsageFilterCriteria(states=states, cities=cities, business_types=business_types,
                                       years=years, months=months, features=features)

        if len(businesses) >= USAGE_INDEX_THRESHOLD:
            if st.session_state.get('usage_index_source') is not businesses:
                st.session_state['usage_index'] = UsageIndex(businesses)
                st.session_state['usage_index_source'] = businesses
            matched = st.session_state['usage_index'].filter(criteria)
        else:
            matched = filter_businesses(businesses, criteria)

        summary = summarize(matched)
        col1, col2, col3 = st.columns(3)
        col1.metric("Businesses", summary.count)
        col2.metric("Total Usage", f"{summary.total_usage:,}")
        col3.metric("Average Usage", f"{summary.average_usage:,.1f}")

        st.dataframe(pd.DataFrame([
            {'Business': b.business_name, 'Type': b.business_type, 'Usage Count': b.usage_count}
            for b in matched
        ]), use_container_width=True, hide_index=True)

    def _render_drill_down(self, analytics, businesses: List[BusinessUsage]):
        drill_down = st.session_state.get('usage_drill_down')
        if drill_down is None or drill_down.analytics is not analytics or drill_down.businesses is not businesses:
            drill_down = DrillDown(analytics, businesses)
            st.session_state['usage_drill_down'] = drill_down

        crumbs = ["All"] + [str(c) for c in drill_down.breadcrumbs]
        crumb_cols = st.columns(len(crumbs))
        for depth, (col, crumb) in enumerate(zip(crumb_cols, crumbs)):
            if col.button(crumb, key=f"crumb_{depth}"):
                drill_down.back_to(depth)
                st.rerun()

        rows = drill_down.rows()
        level = drill_down.level
        for index, row in enumerate(rows):
            label = f"{row[level]}: {row['count']:,}"
            if drill_down.is_at_leaf:
                st.write(label)
            elif st.button(label, key=f"drill_{level}_{index}"):
                drill_down.drill(row)
                st.rerun()


class PerformanceComparisonPanel:
    """Time-normalized comparison of ad methods across local top performers."""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    def render(self):
        st.subheader("⚖️ Ad Performance Comparison")

        result = self.data_manager.load_panel(
            lambda: (self.data_manager.get_top_performers(), self.data_manager.get_ad_methods(),
                     self.data_manager.get_business_types()),
            "performance comparison"
        )
        if not result.ok:
            display_panel_error(result.error)
            return

        (campaigns, businesses, _), ad_methods, business_types = result.data

        col1, col2, col3 = st.columns(3)
        with col1:
            time_frame = st.selectbox("Time Frame", list(TimeFrame), index=2,
                                      format_func=lambda tf: tf.value.title())
        with col2:
            selected_types = st.multiselect("Business Types", business_types)
        with col3:
            min_roi_text = st.text_input("Minimum ROI (%)", value="")

        method_names = {method.id: method.name for method in ad_methods}
        selected_methods = st.multiselect("Ad Methods", list(method_names),
                                          format_func=lambda i: method_names[i])

        min_roi = None
        if min_roi_text.strip():
            try:
                min_roi = float(min_roi_text)
            except ValueError:
                st.error("• Minimum ROI must be a number")
                return

        normalized = normalize_campaigns(campaigns, time_frame, ad_methods, businesses)
        filtered = filter_campaigns(normalized, business_types=selected_types,
                                    ad_method_ids=selected_methods, min_roi=min_roi)
        performance = ad_method_performance(filtered, ad_methods)

        if not performance:
            st.info("No data available for the selected filters.")
            return

        best = best_performing_method(performance)
        st.success(f"Best performing ad method: **{best.ad_method_name}** "
                   f"({best.average_roi:.1f}% {time_frame.value} ROI)")

        df = pd.DataFrame([
            {
                'Ad Method': p.ad_method_name,
                'Average ROI': round(p.average_roi, 2),
                'Average ROAS': round(p.average_roas, 2),
                'Daily ROI': round(p.daily_roi, 2),
                'Weekly ROI': round(p.weekly_roi, 2),
                'Monthly ROI': round(p.monthly_roi, 2),
                'Campaigns': p.campaign_count,
                'Revenue': p.total_revenue,
                'Cost': p.total_cost
            }
            for p in performance
        ])

        roi_tab, roas_tab = st.tabs(["ROI Analysis", "ROAS Analysis"])
        with roi_tab:
            fig = px.bar(df.sort_values('Average ROI', ascending=False), x='Ad Method', y='Average ROI',
                         color='Ad Method', title=f"Average ROI ({time_frame.value})")
            st.plotly_chart(fig, use_container_width=True)
        with roas_tab:
            fig = px.bar(df.sort_values('Average ROAS', ascending=False), x='Ad Method', y='Average ROAS',
                         color='Ad Method', title=f"Average ROAS ({time_frame.value})")
            st.plotly_chart(fig, use_container_width=True)

        st.dataframe(df, use_container_width=True, hide_index=True)


class AdvisorChatComponent:
    """Chat with the AI marketing advisor."""

    def __init__(self, data_manager: DataManager, business_id: int,
                 advisor: Optional[MarketingAdvisor] = None):
        self.data_manager = data_manager
        self.business_id = business_id
        self.advisor = advisor or MarketingAdvisor()

    def render(self):
        st.subheader("💬 Marketing Advisor")
        if not self.advisor.is_ai_enabled:
            st.caption("AI advice is unavailable; showing built-in recommendations.")

        history = st.session_state.setdefault('advisor_history', [])
        for message in history:
            with st.chat_message(message['role']):
                st.markdown(message['content'])

        prompt = st.chat_input("Ask about your marketing ROI...")
        if not prompt:
            return

        history.append({'role': 'user', 'content': prompt})
        with st.chat_message('user'):
            st.markdown(prompt)

        result = self.data_manager.load_panel(lambda: self._build_request(prompt), "marketing advisor")
        request = result.data if result.ok else AdviceRequest(message=prompt)

        with st.chat_message('assistant'):
            with st.spinner("Analyzing your campaigns..."):
                answer = self.advisor.generate_advice(request)
            st.markdown(answer)
        history.append({'role': 'assistant', 'content': answer})

    def _build_request(self, prompt: str) -> AdviceRequest:
        business = self.data_manager.get_business(self.business_id)
        campaigns = self.data_manager.get_business_campaigns(self.business_id)
        top_campaigns, _, _ = self.data_manager.get_top_performers(business.business_type)
        return AdviceRequest(
            message=prompt,
            campaigns=campaigns,
            business_type=business.business_type,
            ad_methods=self.data_manager.get_ad_methods(),
            top_performers=sorted(top_campaigns, key=campaign_roi, reverse=True),
            user_metrics=business_stats(campaigns)
        )


class ShareComponent:
    """Share a campaign's results on social networks or by email."""

    def __init__(self, page_url: str = ""):
        self.page_url = page_url

    def render(self, campaign: Campaign, business: Optional[Business] = None):
        data = {
            'business_name': business.name if business else None,
            'campaign_name': campaign.name,
            'roi': campaign_roi(campaign),
            'ad_spend': float(campaign.amount_spent),
            'revenue': float(campaign.amount_earned) if campaign.amount_earned is not None else None,
            'start_date': campaign.start_date.isoformat(),
            'end_date': campaign.end_date.isoformat() if campaign.end_date else None
        }

        st.text_area("Share text", share_text(data), key=f"share_text_{campaign.id}")
        links = share_links(data, self.page_url)
        st.markdown(
            f"[Twitter]({links['twitter']}) · [Facebook]({links['facebook']}) · "
            f"[LinkedIn]({links['linkedin']}) · [Email]({links['email']})"
        )


class CampaignImportComponent:
    """Bulk import of campaigns from a CSV or Excel file."""

    def __init__(self, data_manager: DataManager, business_id: int):
        self.data_manager = data_manager
        self.business_id = business_id

    def render(self):
        st.subheader("📤 Import Campaigns")
        config = config_manager.load_config()
        uploaded = st.file_uploader(
            "Campaign file",
            type=[fmt.lstrip('.') for fmt in config.supported_file_formats],
            help="Columns: name, ad_method, amount_spent, start_date, "
                 "and optionally amount_earned, end_date, description, status"
        )
        if uploaded is None:
            return

        if not config_manager.is_valid_file_format(uploaded.name):
            st.error(f"❌ Unsupported file type. Use one of: {', '.join(config.supported_file_formats)}")
            return

        if uploaded.size > config_manager.get_max_file_size_bytes():
            st.error(f"❌ File exceeds the {config.max_upload_size_mb} MB upload limit")
            return

        result = self.data_manager.load_panel(self.data_manager.get_ad_methods, "campaign import")
        if not result.ok:
            display_panel_error(result.error)
            return

        try:
            parser = CampaignFileParser(uploaded, filename=uploaded.name)
            campaigns, row_errors = parser.parse_campaigns(self.business_id, result.data)
        except ValueError as e:
            display_panel_error(error_handler.handle_data_error(e, "campaign import"))
            return

        for message in row_errors:
            st.warning(f"• {message}")

        if not campaigns:
            st.info("No valid campaigns found in the file.")
            return

        method_names = {method.id: method.name for method in result.data}
        st.dataframe(campaigns_dataframe(campaigns, method_names), use_container_width=True, hide_index=True)

        if st.button(f"Import {len(campaigns)} campaigns"):
            saved = self.data_manager.load_panel(
                lambda: self.data_manager.create_campaigns(campaigns), "campaign import"
            )
            if saved.ok:
                st.success(f"✅ Imported {len(saved.data)} campaigns")
            else:
                display_panel_error(saved.error)


class UserAdminPanel:
    """Admin user management: admin flag, account status and password reset."""

    STATUSES = ["Active", "Inactive", "Suspended"]

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    def render(self):
        st.subheader("👥 Users")

        result = self.data_manager.load_panel(self.data_manager.get_users, "user management")
        if not result.ok:
            display_panel_error(result.error)
            return

        users = result.data
        st.dataframe(pd.DataFrame([
            {'ID': u.id, 'Username': u.username, 'Email': u.email, 'Admin': u.is_admin, 'Status': u.status}
            for u in users
        ]), use_container_width=True, hide_index=True)

        if not users:
            return

        user_by_id = {u.id: u for u in users}
        user_id = st.selectbox("User", list(user_by_id), format_func=lambda i: user_by_id[i].username)
        user = user_by_id[user_id]

        with st.form("user_flags_form"):
            is_admin = st.checkbox("Platform admin", value=user.is_admin)
            status_index = self.STATUSES.index(user.status) if user.status in self.STATUSES else 0
            status = st.selectbox("Status", self.STATUSES, index=status_index)
            if st.form_submit_button("Save"):
                saved = self.data_manager.load_panel(
                    lambda: self.data_manager.update_user_flags(user.id, is_admin=is_admin, status=status),
                    "user update"
                )
                if saved.ok:
                    st.success(f"✅ Updated {user.username}")
                else:
                    display_panel_error(saved.error)

        with st.form("password_reset_form", clear_on_submit=True):
            password = st.text_input("New password", type="password")
            confirm = st.text_input("Confirm password", type="password")
            if st.form_submit_button("Reset Password"):
                validation = form_validator.validate_password_change(password, confirm)
                if not validation.is_valid:
                    display_validation_errors(validation)
                else:
                    saved = self.data_manager.load_panel(
                        lambda: self.data_manager.reset_user_password(user.id, password), "password reset"
                    )
                    if saved.ok:
                        st.success(f"✅ Password reset for {user.username}")
                    else:
                        display_panel_error(saved.error)
