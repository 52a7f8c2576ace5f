"""View router: which page renders each view panel."""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel


class ViewState(str, Enum):
    DASHBOARD = "dashboard"
    JOBS = "jobs"
    OFFERS = "offers"
    SETTINGS = "settings"
    RESUME = "resume"
    CLAIRE = "claire"
    AVATAR_BUILDER = "avatar-builder"


VIEW_ENDPOINTS: Dict[ViewState, str] = {
    ViewState.DASHBOARD: "jobflow.dashboard",
    ViewState.JOBS: "jobflow.jobs",
    ViewState.OFFERS: "jobflow.offers",
    ViewState.SETTINGS: "jobflow.settings_view",
    ViewState.RESUME: "jobflow.resume",
    ViewState.CLAIRE: "jobflow.claire",
    ViewState.AVATAR_BUILDER: "jobflow.avatar_builder",
}


class NavItem(BaseModel):
    view: ViewState
    label: str

    @property
    def endpoint(self) -> str:
        return VIEW_ENDPOINTS[self.view]


# Sidebar order; settings sits apart at the bottom
NAV_ITEMS: List[NavItem] = [
    NavItem(view=ViewState.DASHBOARD, label="Dashboard"),
    NavItem(view=ViewState.JOBS, label="Applications"),
    NavItem(view=ViewState.OFFERS, label="Offers & Interview"),
    NavItem(view=ViewState.RESUME, label="Resume Builder"),
    NavItem(view=ViewState.AVATAR_BUILDER, label="AI Avatar Studio"),
    NavItem(view=ViewState.CLAIRE, label="Claire AI"),
]
SETTINGS_ITEM = NavItem(view=ViewState.SETTINGS, label="Settings")
