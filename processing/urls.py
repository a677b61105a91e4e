from django.urls import path
from .views import JobDetailView, MergeJobView, TrimJobView

urlpatterns = [
    path("trim/", TrimJobView.as_view(), name="video_trim"),
    path("merge/", MergeJobView.as_view(), name="video_merge"),
    path("jobs/<uuid:job_id>/", JobDetailView.as_view(), name="video_job_detail"),
]
