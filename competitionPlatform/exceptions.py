import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """业务约束冲突：满员、重复申请、重复参赛、非法状态流转等"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request conflicts with the current state.'
    default_code = 'conflict'


class OperationFailed(APIException):
    """多步写操作中的意外错误，不向调用方暴露底层原因"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Operation failed.'
    default_code = 'operation_failed'


def logging_exception_handler(exc, context):
    """在 DRF 默认处理的基础上记录 5xx 错误"""
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else '-'

    if response is None:
        # 未被 DRF 识别的异常，交给 Django 返回 500
        logger.exception("Unhandled error in %s", view_name)
    elif response.status_code >= 500:
        logger.error("%s failed with %s: %s", view_name, response.status_code, exc)
    return response
