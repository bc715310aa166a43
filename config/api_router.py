from django.conf import settings
from django.urls import include
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from taskboard.boards.api.views import BoardListViewSet
from taskboard.boards.api.views import BoardViewSet
from taskboard.boards.api.views import TaskViewSet
from taskboard.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("boards", BoardViewSet)
# Lists and tasks are addressed by their own id once created; creation is
# nested under the parent (boards/<id>/lists/, lists/<id>/tasks/).
router.register("lists", BoardListViewSet)
router.register("tasks", TaskViewSet)


app_name = "api"
urlpatterns = [
    path("realtime/", include("taskboard.realtime.api.urls")),
    *router.urls,
]
