from django.urls import path

from .views import DirectMessagesView, MessageReactionView, RoomReadView

urlpatterns = [
    path("direct/<int:user_id>/", DirectMessagesView.as_view(), name="chat-direct"),
    path("rooms/<str:room>/read/", RoomReadView.as_view(), name="chat-room-read"),
    path("messages/<int:message_id>/reactions/", MessageReactionView.as_view(), name="chat-reaction"),
]
