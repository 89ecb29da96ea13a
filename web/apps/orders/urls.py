from django.urls import path
from .views import OrdersPingView, OrdersCollectionView
from .views import OrderByNumberView, OrderStatusView, ValidateAddressView
app_name = "orders"

urlpatterns = [
    path("ping/", OrdersPingView.as_view(), name="ping"),
    path("", OrdersCollectionView.as_view(), name="orders-collection"),  # GET list / POST create
    path("validate-address/", ValidateAddressView.as_view(), name="validate-address"),
    path("by-number/<str:order_number>/", OrderByNumberView.as_view(), name="orders-by-number"),
    path("<uuid:oid>/status/", OrderStatusView.as_view(), name="orders-status"),
]
