from django.urls import path

from chat.views import BidMessagesView

from .views import BidAcceptView, BidCreateView, BidDetailView, MyBidsView

urlpatterns = [
    path("", BidCreateView.as_view(), name="bid-create"),
    path("mine/", MyBidsView.as_view(), name="bid-mine"),
    path("<int:bid_id>/", BidDetailView.as_view(), name="bid-detail"),
    path("<int:bid_id>/accept/", BidAcceptView.as_view(), name="bid-accept"),
    path("<int:bid_id>/messages/", BidMessagesView.as_view(), name="bid-messages"),
]
