from django.urls import path

from .views import ChannelAuthView

app_name = "realtime"
urlpatterns = [
    path("auth/", ChannelAuthView.as_view(), name="channel-auth"),
]
