from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    message = "Admins only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsSelfOrAdmin(BasePermission):
    """Object-level check for endpoints addressed by a user id in the URL."""

    message = "You can only access your own account."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        target = view.kwargs.get(getattr(view, 'user_lookup_kwarg', 'pk'))
        return user.is_admin or str(user.pk) == str(target)
