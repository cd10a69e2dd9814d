from django.http import JsonResponse


def health_view(request):
    return JsonResponse({"message": "IMI Backend API is running"})


def error_404_view(request, exception):
    return JsonResponse({"message": f"Route not found: {request.path}"}, status=404)


def error_500_view(request):
    return JsonResponse({"message": "Internal Server Error"}, status=500)
