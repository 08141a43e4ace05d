"""
Main entry point for the AdTrack analytics application.
"""
import logging
import streamlit as st
from dotenv import load_dotenv

from config.settings import config_manager
from data.manager import DataManager
from ui.components import (
    AdvisorChatComponent, BudgetWizardComponent, CampaignImportComponent, DashboardPanel,
    FeatureUsageAnalyticsPanel, PerformanceComparisonPanel, UserAdminPanel, display_panel_error
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BUSINESS_PAGES = ["Dashboard", "Budget Wizard", "Ad Performance", "Marketing Advisor", "Import Campaigns"]
ADMIN_PAGES = ["Feature Usage", "Users"]


def select_business(data_manager: DataManager):
    """Sidebar business picker. Returns the selected business id or None."""
    result = data_manager.load_panel(data_manager.get_businesses, "business list")
    if not result.ok:
        display_panel_error(result.error)
        return None

    businesses = result.data
    if not businesses:
        st.sidebar.info("No businesses registered yet.")
        return None

    business_by_id = {b.id: b for b in businesses}
    return st.sidebar.selectbox(
        "Business",
        list(business_by_id),
        format_func=lambda i: f"{business_by_id[i].name} ({business_by_id[i].business_type})"
    )


def main():
    """Main application entry point."""
    load_dotenv()

    st.set_page_config(
        page_title="AdTrack",
        page_icon="📊",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    st.title("📊 AdTrack")
    st.markdown("Track advertising ROI and decide where your next marketing dollar goes")

    # Load configuration
    try:
        config = config_manager.load_config()
    except ValueError as e:
        st.error(f"❌ Configuration Error: {e}")
        st.stop()

    if 'data_manager' not in st.session_state:
        st.session_state['data_manager'] = DataManager(cache_ttl_minutes=config.cache_ttl_minutes)
    data_manager = st.session_state['data_manager']

    st.sidebar.header("Navigation")
    page = st.sidebar.radio("Page", BUSINESS_PAGES + ADMIN_PAGES)

    if st.sidebar.button("🔄 Refresh data"):
        data_manager.clear_cache()

    if page in ADMIN_PAGES:
        if page == "Feature Usage":
            FeatureUsageAnalyticsPanel(data_manager).render()
        else:
            UserAdminPanel(data_manager).render()
    else:
        business_id = select_business(data_manager)
        if business_id is None:
            st.info("Select a business to continue.")
        elif page == "Dashboard":
            DashboardPanel(data_manager, business_id, share_page_url=config.app_url).render()
        elif page == "Budget Wizard":
            BudgetWizardComponent(data_manager, business_id).render()
        elif page == "Ad Performance":
            PerformanceComparisonPanel(data_manager).render()
        elif page == "Marketing Advisor":
            AdvisorChatComponent(data_manager, business_id).render()
        else:
            CampaignImportComponent(data_manager, business_id).render()

    with st.sidebar.expander("System Information"):
        stats = data_manager.get_cache_stats()
        st.write(f"API: {config.api_base_url}")
        st.write(f"Default Currency: {config.default_currency}")
        st.write(f"Cache: {stats['valid_entries']} of {stats['entries']} entries fresh "
                 f"(TTL {config.cache_ttl_minutes} min)")
        st.write(f"Cache hits/misses: {stats['hits']}/{stats['misses']}")


if __name__ == "__main__":
    main()
