from django.contrib import admin
from django.urls import include, path

from . import views

urlpatterns = [
    path("", views.health_view, name="health"),
    path("admin/", admin.site.urls),
    path("api/", include("payments.urls")),
]

handler404 = "imistore.views.error_404_view"
handler500 = "imistore.views.error_500_view"
