"""Account API views."""

from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.actors import actor_for


class MeView(APIView):
    """Return the authenticated identity and the actor it maps to.

    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        actor = actor_for(request.user)
        return Response(
            {
                "id": str(request.user.id),
                "username": request.user.username,
                "email": request.user.email,
                "role": request.user.role,
                "actor": type(actor).__name__,
            }
        )
