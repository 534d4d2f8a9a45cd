from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

from . import views

urlpatterns = [
    # =============== API DOCUMENTATION ===============
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # =============== AUTHENTICATION ===============
    path('auth/login/', views.CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/register/', views.register, name='register'),

    # =============== USER PROFILE ===============
    path('profile/', views.MyProfileView.as_view(), name='my_profile'),

    # =============== STAFF MANAGEMENT ===============
    path('staff/', views.StaffListCreateView.as_view(), name='staff_list_create'),
    path('staff/<uuid:user_id>/', views.StaffDetailView.as_view(), name='staff_detail'),
    path('staff/<uuid:user_id>/role/', views.update_staff_role, name='staff_role_update'),

    # =============== SYSTEM ===============
    path('health/', views.health_check, name='health_check'),
]
