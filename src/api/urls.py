"""Main API URL router for /api/v1/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView

from api.v1 import views as v1_views

router = DefaultRouter()
router.register(r'zones', v1_views.ServiceZoneViewSet)
router.register(r'users', v1_views.UserViewSet)
router.register(r'customers', v1_views.CustomerViewSet)
router.register(r'contacts', v1_views.ContactViewSet)
router.register(r'assets', v1_views.AssetViewSet)
router.register(r'offers', v1_views.OfferViewSet)
router.register(r'targets', v1_views.TargetViewSet)

urlpatterns = [
    path('', include(router.urls)),

    # Auth
    path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain-pair'),

    # Forecast
    path('forecast/summary/', v1_views.ForecastSummaryView.as_view(), name='forecast-summary'),

    # Dashboard
    path('dashboard/summary/', v1_views.OfferDashboardView.as_view(), name='dashboard-summary'),

    # Imports
    path('imports/integrate/', v1_views.IntegrateOffersView.as_view(), name='imports-integrate'),
    path('imports/reconcile/', v1_views.ReconcileZonesView.as_view(), name='imports-reconcile'),
]
