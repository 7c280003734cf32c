from django.urls import path
from .views import SendCredentialsView, BulkSendCredentialsView, MyCredentialsView

urlpatterns = [
    path("send-credentials/", SendCredentialsView.as_view(), name="send-credentials"),
    path("send-credentials/bulk/", BulkSendCredentialsView.as_view(), name="send-credentials-bulk"),
    path("my-credentials/", MyCredentialsView.as_view(), name="my-credentials"),
]
