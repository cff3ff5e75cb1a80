from rest_framework import permissions


class IsQuoteApprover(permissions.BasePermission):
    """
    Only managers may approve or reject a quote waiting in VALIDATION.
    """
    message = "Manager role required to approve or reject quotes."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'can_approve_quotes', False))
