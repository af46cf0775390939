from rest_framework import permissions

STUDENT_ROLE = 'Student'
COMP_ADMIN_ROLE = 'CompetitionAdministrator'


def is_comp_admin(user):
    """判断是否为竞赛管理员（超级管理员同样视为管理员）"""
    if not (user and user.is_authenticated):
        return False
    if user.is_superuser:
        return True
    return user.groups.filter(name=COMP_ADMIN_ROLE).exists()


class IsCompAdminOrReadOnly(permissions.BasePermission):
    """
    仅竞赛管理者可修改，其余登录用户仅查看。用于竞赛业务管理
    """
    def has_permission(self, request, view):
        # 判断用户是否已登录
        if not (request.user and request.user.is_authenticated):
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        return is_comp_admin(request.user)


class IsCompAdmin(permissions.BasePermission):
    """
    仅竞赛管理员：报销审核、用户查询
    """
    def has_permission(self, request, view):
        return is_comp_admin(request.user)


class IsAdmin(permissions.BasePermission):
    """
    超级管理者： 管理员。用于修改用户
    """
    def has_permission(self, request, view):
        if not(request.user and request.user.is_authenticated):
            return False

        # 只有管理员才能访问
        return request.user.is_superuser


class NotModifyingSelf(permissions.BasePermission):
    """
    不允许管理员修改或删除自己
    """
    def has_object_permission(self, request, view, obj):
        if request.method in ('PATCH', 'PUT', 'DELETE'):
            return obj != request.user
        return True
