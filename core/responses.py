from rest_framework import status as http_status
from rest_framework.response import Response


def success(data=None, message=None, status=http_status.HTTP_200_OK):
    """Success half of the API envelope: {success: true, data, message?}."""
    body = {"success": True, "data": data}
    if message:
        body["message"] = str(message)
    return Response(body, status=status)


def created(data=None, message=None):
    return success(data, message, status=http_status.HTTP_201_CREATED)
