"""
Success envelope shared by every API endpoint: {success, message, data}.
"""
from rest_framework import status as http_status
from rest_framework.response import Response


def api_response(data=None, message=None, status=http_status.HTTP_200_OK, success=True, headers=None):
    body = {'success': success}
    if message is not None:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return Response(body, status=status, headers=headers)


def created_response(data, message):
    return api_response(data=data, message=message, status=http_status.HTTP_201_CREATED)
