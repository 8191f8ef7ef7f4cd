from django.urls import path

from modules.analytics.views import ProductSummaryView, RevenueSummaryView

urlpatterns = [
    path("analytics/summary/", RevenueSummaryView.as_view(), name="analytics_summary"),
    path("analytics/products/", ProductSummaryView.as_view(), name="analytics_products"),
]
