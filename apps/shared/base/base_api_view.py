from rest_framework.views import APIView
from rest_framework_simplejwt.authentication import JWTAuthentication


class BaseAPIView(APIView):
    """
    Base class for the public API views.

    JWT authentication only. Errors are rendered by the project exception
    handler, views raise domain exceptions and never build error bodies.
    """

    authentication_classes = (JWTAuthentication,)

    def get_service(self):
        """
        Subclasses must implement this to return appropriate service instance.

        Returns:
            Service instance for business logic operations

        Raises:
            NotImplementedError: If not implemented by subclass
        """
        raise NotImplementedError("Subclasses must implement get_service()")
