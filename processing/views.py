from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .jobs import get_job
from .models import ProcessingJob
from .serializers import MergeRequestSerializer, ProcessingJobSerializer, TrimRequestSerializer
from .tasks import submit_job


class _SubmitJobView(views.APIView):
    """
    Validates a request synchronously, then creates a queued job and
    dispatches it to a worker. Rejected requests never create a job.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    kind = None
    request_serializer = None

    def post(self, request):
        ser = self.request_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        payload = {k: v for k, v in ser.validated_data.items() if v not in (None, "")}

        job = submit_job(self.kind, payload)
        return Response(ProcessingJobSerializer(job).data, status=status.HTTP_202_ACCEPTED)


class TrimJobView(_SubmitJobView):
    kind = ProcessingJob.Kind.TRIM
    request_serializer = TrimRequestSerializer


class MergeJobView(_SubmitJobView):
    kind = ProcessingJob.Kind.MERGE
    request_serializer = MergeRequestSerializer


class JobDetailView(views.APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, job_id):
        job = get_job(job_id)
        if job is None:
            return Response({"detail": "Not found"}, status=404)
        return Response(ProcessingJobSerializer(job).data)
