"""API v1 views for the offer funnel."""
import logging

from django.db.models import Q
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import User
from customers.models import Asset, Contact, Customer
from imports.normalizers import generate_reference_number
from imports.resolver import MATCHERS
from imports.tasks import integrate_processed_offers, reconcile_zones
from offers.dashboard import offer_dashboard
from offers.forecast import forecast_summary
from offers.models import Offer
from offers.services import add_offer_note, change_offer_status, next_offer_reference
from targets.engine import TargetPerformanceEngine
from targets.models import Target
from zones.models import ServiceZone

from .permissions import (
    IsAdminOrReadOnly,
    IsAdminRole,
    IsZoneMember,
    is_admin,
    user_zone_ids,
)
from .serializers import (
    AssetSerializer,
    ContactSerializer,
    CustomerSerializer,
    NextReferenceSerializer,
    OfferActivitySerializer,
    OfferNoteSerializer,
    OfferSerializer,
    OfferStatusChangeSerializer,
    ServiceZoneSerializer,
    TargetSerializer,
    UserSerializer,
)

logger = logging.getLogger("offerfunnel")


def _check_zone_access(user, zone_id):
    """Zone users may only write records of their own zones."""
    if is_admin(user):
        return
    if zone_id is None or zone_id not in user_zone_ids(user):
        raise PermissionDenied("You can only manage records of your own zones.")


# ---------------------------------------------------------------------------
# Zones / users
# ---------------------------------------------------------------------------

class ServiceZoneViewSet(viewsets.ModelViewSet):
    serializer_class = ServiceZoneSerializer
    queryset = ServiceZone.objects.all()
    permission_classes = [IsAdminOrReadOnly]
    search_fields = ['name', 'short_form']
    ordering_fields = ['name', 'created_at']
    filterset_fields = ['is_active']


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """Admins see every user; zone users see the members of their zones."""

    serializer_class = UserSerializer
    queryset = User.objects.prefetch_related('service_zones')
    permission_classes = [IsAuthenticated]
    search_fields = ['name', 'email', 'short_form']
    ordering_fields = ['name', 'email']
    filterset_fields = ['role', 'is_active']

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if is_admin(user):
            return qs
        return qs.filter(service_zones__in=user_zone_ids(user)).distinct()


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

class CustomerViewSet(viewsets.ModelViewSet):
    serializer_class = CustomerSerializer
    queryset = Customer.objects.select_related('zone')
    permission_classes = [IsAuthenticated, IsZoneMember]
    search_fields = ['company_name', 'location', 'department']
    ordering_fields = ['company_name', 'created_at']
    filterset_fields = ['zone', 'is_active']

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if is_admin(user):
            return qs
        return qs.filter(zone_id__in=user_zone_ids(user))

    def get_object_zone_id(self, obj):
        return obj.zone_id

    def perform_create(self, serializer):
        zone = serializer.validated_data.get('zone')
        _check_zone_access(self.request.user, zone.pk if zone else None)
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        if 'zone' in serializer.validated_data:
            zone = serializer.validated_data['zone']
            _check_zone_access(self.request.user, zone.pk if zone else None)
        serializer.save(updated_by=self.request.user)


class _CustomerChildViewSet(viewsets.ModelViewSet):
    """Contacts and assets inherit the zone of their customer."""

    permission_classes = [IsAuthenticated, IsZoneMember]
    filterset_fields = ['customer', 'is_active']

    def get_queryset(self):
        qs = super().get_queryset().select_related('customer')
        user = self.request.user
        if is_admin(user):
            return qs
        return qs.filter(customer__zone_id__in=user_zone_ids(user))

    def get_object_zone_id(self, obj):
        return obj.customer.zone_id

    def perform_create(self, serializer):
        _check_zone_access(self.request.user, serializer.validated_data['customer'].zone_id)
        serializer.save()

    def perform_update(self, serializer):
        if 'customer' in serializer.validated_data:
            _check_zone_access(self.request.user, serializer.validated_data['customer'].zone_id)
        serializer.save()


class ContactViewSet(_CustomerChildViewSet):
    serializer_class = ContactSerializer
    queryset = Contact.objects.all()
    search_fields = ['contact_person_name', 'email', 'contact_number']
    ordering_fields = ['contact_person_name', 'created_at']


class AssetViewSet(_CustomerChildViewSet):
    serializer_class = AssetSerializer
    queryset = Asset.objects.all()
    search_fields = ['asset_name', 'machine_serial_number', 'model']
    ordering_fields = ['asset_name', 'created_at']


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

class OfferViewSet(viewsets.ModelViewSet):
    serializer_class = OfferSerializer
    queryset = Offer.objects.select_related('customer', 'zone', 'assigned_to')
    permission_classes = [IsAuthenticated, IsZoneMember]
    search_fields = ['offer_reference_number', 'company', 'title', 'customer__company_name']
    ordering_fields = ['created_at', 'offer_value', 'po_value', 'offer_month', 'po_expected_month']
    filterset_fields = [
        'stage', 'status', 'priority', 'product_type', 'zone', 'assigned_to',
        'customer', 'offer_month', 'po_expected_month',
    ]

    def get_queryset(self):
        return super().get_queryset().visible_to(self.request.user)

    def get_object_zone_id(self, obj):
        return obj.zone_id

    def perform_create(self, serializer):
        customer = serializer.validated_data['customer']
        _check_zone_access(self.request.user, serializer.validated_data['zone'].pk)
        _check_zone_access(self.request.user, customer.zone_id)
        reference = serializer.validated_data.get('offer_reference_number') or generate_reference_number('OF')
        serializer.save(
            offer_reference_number=reference,
            company=serializer.validated_data.get('company') or customer.company_name,
            created_by=self.request.user,
            updated_by=self.request.user,
        )

    def perform_update(self, serializer):
        if 'zone' in serializer.validated_data:
            _check_zone_access(self.request.user, serializer.validated_data['zone'].pk)
        if 'customer' in serializer.validated_data:
            _check_zone_access(self.request.user, serializer.validated_data['customer'].zone_id)
        if serializer.validated_data.get('offer_reference_number') == '':
            serializer.validated_data.pop('offer_reference_number')
        serializer.save(updated_by=self.request.user)

    @action(detail=True, methods=['patch'], url_path='status')
    def change_status(self, request, pk=None):
        """Move the offer to a new status and/or stage; the move is logged as an activity."""
        offer = self.get_object()
        payload = OfferStatusChangeSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        change_offer_status(offer, request.user, **payload.validated_data)
        return Response(self.get_serializer(offer).data)

    @action(detail=True, methods=['post'])
    def notes(self, request, pk=None):
        offer = self.get_object()
        payload = OfferNoteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        activity = add_offer_note(offer, request.user, payload.validated_data['content'])
        return Response(OfferActivitySerializer(activity).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def activities(self, request, pk=None):
        offer = self.get_object()
        activities = offer.activities.select_related('user')
        return Response(OfferActivitySerializer(activities, many=True).data)

    @action(detail=False, methods=['get'], url_path='next-reference')
    def next_reference(self, request):
        payload = NextReferenceSerializer(data=request.query_params)
        payload.is_valid(raise_exception=True)
        zone = payload.validated_data['zone']
        _check_zone_access(request.user, zone.pk)
        reference = next_offer_reference(zone, payload.validated_data['product_type'], request.user)
        return Response({'offer_reference_number': reference})


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

class TargetViewSet(viewsets.ModelViewSet):
    """
    CRUD for zone and user targets.

    - Only ADMIN can create/update/delete.
    - Zone users read the targets of their zones and their own user targets.
    """

    serializer_class = TargetSerializer
    queryset = Target.objects.select_related('zone', 'user')
    permission_classes = [IsAdminOrReadOnly]
    search_fields = ['target_period', 'zone__name', 'user__name']
    ordering_fields = ['target_period', 'target_value', 'created_at']
    filterset_fields = ['scope', 'zone', 'user', 'period_type', 'target_period', 'product_type']

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if is_admin(user):
            return qs
        return qs.filter(Q(zone_id__in=user_zone_ids(user)) | Q(user=user))

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    @action(detail=True, methods=['get'])
    def performance(self, request, pk=None):
        """Target value against booked offers of the period."""
        target = self.get_object()
        return Response(TargetPerformanceEngine().performance(target))

    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        period_type = request.query_params.get('period_type', Target.PeriodType.MONTHLY)
        period = request.query_params.get('period') or (
            timezone.localdate().strftime('%Y-%m')
            if period_type == Target.PeriodType.MONTHLY
            else str(timezone.localdate().year)
        )
        try:
            data = TargetPerformanceEngine().dashboard(period, period_type)
        except ValueError as exc:
            raise ValidationError({'period': str(exc)})
        if not is_admin(request.user):
            zone_ids = set(user_zone_ids(request.user))
            data['zones'] = [row for row in data['zones'] if row['zone_id'] in zone_ids]
            data['users'] = [row for row in data['users'] if row['user_id'] == request.user.pk]
        return Response(data)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class OfferDashboardView(APIView):
    """Funnel totals; zone users only see their own zones."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        offers = Offer.objects.visible_to(request.user)
        zone = request.query_params.get('zone')
        if zone:
            try:
                offers = offers.filter(zone_id=int(zone))
            except ValueError:
                raise ValidationError({'zone': 'Zone must be a number.'})
        return Response(offer_dashboard(offers))


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------

class ForecastSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        raw_year = request.query_params.get('year')
        try:
            year = int(raw_year) if raw_year else timezone.localdate().year
        except ValueError:
            raise ValidationError({'year': 'Year must be a number.'})
        if not 1900 <= year <= 2100:
            raise ValidationError({'year': 'Year must be between 1900 and 2100.'})
        return Response(forecast_summary(year))


# ---------------------------------------------------------------------------
# Import triggers
# ---------------------------------------------------------------------------

class IntegrateOffersView(APIView):
    """Queue the integration of ``all-offers.json``."""

    permission_classes = [IsAdminRole]

    def post(self, request):
        matcher = request.data.get('matcher', 'containment')
        if matcher not in MATCHERS:
            raise ValidationError({'matcher': f"Choose one of: {', '.join(sorted(MATCHERS))}."})
        result = integrate_processed_offers.delay(matcher=matcher)
        logger.info("Offer integration queued by %s (task %s)", request.user.email, result.id)
        return Response({'task_id': result.id}, status=status.HTTP_202_ACCEPTED)


class ReconcileZonesView(APIView):
    """Queue the zone reconciliation over ``comprehensive-data.json``."""

    permission_classes = [IsAdminRole]

    def post(self, request):
        result = reconcile_zones.delay()
        logger.info("Zone reconciliation queued by %s (task %s)", request.user.email, result.id)
        return Response({'task_id': result.id}, status=status.HTTP_202_ACCEPTED)
