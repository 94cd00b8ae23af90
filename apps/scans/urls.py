from django.urls import path

from apps.scans.views import ScanValidateAPIView

app_name = 'scans'


urlpatterns = [
    path('validate', ScanValidateAPIView.as_view(), name='scan-validate'),  # POST
]
