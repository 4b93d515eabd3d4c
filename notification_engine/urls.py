"""URL configuration for the notification delivery engine."""

from django.urls import include, path

urlpatterns = [
    path("api/v1/delivery/", include("delivery.urls")),
]
