"""Serializers for the offer funnel API."""
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from accounts.models import User
from customers.models import Asset, Contact, Customer
from offers.models import Offer, OfferActivity, OfferStage, OfferStatus, ProductType
from targets.models import Target
from zones.models import ServiceZone


# ---------------------------------------------------------------------------
# Zones / users
# ---------------------------------------------------------------------------

class ServiceZoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceZone
        fields = ['id', 'name', 'short_form', 'description', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']


class UserSerializer(serializers.ModelSerializer):
    zones = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'short_form', 'role', 'is_active', 'zones']
        read_only_fields = fields

    def get_zones(self, obj) -> list[str]:
        return [zone.name for zone in obj.service_zones.all()]


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

class CustomerSerializer(serializers.ModelSerializer):
    """``created_by`` / ``updated_by`` are set by the view."""

    zone_name = serializers.CharField(source='zone.name', read_only=True, default=None)

    class Meta:
        model = Customer
        fields = [
            'id', 'company_name', 'location', 'department', 'zone', 'zone_name',
            'is_active', 'created_by', 'updated_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'zone_name', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_company_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Company name cannot be blank.')
        return value


class ContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contact
        fields = [
            'id', 'customer', 'contact_person_name', 'contact_number', 'email',
            'is_primary', 'is_active', 'created_at',
        ]
        read_only_fields = ['id', 'created_at']


class AssetSerializer(serializers.ModelSerializer):
    class Meta:
        model = Asset
        fields = [
            'id', 'customer', 'asset_name', 'machine_serial_number', 'model',
            'is_active', 'created_at',
        ]
        read_only_fields = ['id', 'created_at']


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

class OfferSerializer(serializers.ModelSerializer):
    offer_reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    customer_name = serializers.CharField(source='customer.company_name', read_only=True)
    zone_name = serializers.CharField(source='zone.name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.name', read_only=True, default=None)
    booked_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Offer
        fields = [
            'id', 'offer_reference_number', 'offer_reference_date', 'title', 'description',
            'product_type', 'lead', 'registration_date',
            'company', 'location', 'department', 'contact_person_name', 'contact_number',
            'email', 'machine_serial_number',
            'status', 'stage', 'priority',
            'customer', 'customer_name', 'contact', 'asset', 'assigned_to', 'assigned_to_name',
            'zone', 'zone_name',
            'offer_value', 'po_value', 'booked_value', 'probability_percentage',
            'offer_month', 'po_expected_month', 'po_received_month', 'po_date', 'remarks',
            'created_by', 'updated_by', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'customer_name', 'zone_name', 'assigned_to_name', 'booked_value',
            'created_by', 'updated_by', 'created_at', 'updated_at',
        ]

    def validate_offer_reference_number(self, value):
        value = (value or '').strip()
        if not value:
            return value
        existing = Offer.objects.filter(offer_reference_number=value)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError('An offer with this reference number already exists.')
        return value

    def validate(self, attrs):
        customer = attrs.get('customer') or getattr(self.instance, 'customer', None)
        for field in ('contact', 'asset'):
            related = attrs.get(field)
            if related is not None and customer is not None and related.customer_id != customer.pk:
                raise serializers.ValidationError({field: f'This {field} belongs to another customer.'})
        return attrs


class OfferActivitySerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.name', read_only=True, default=None)

    class Meta:
        model = OfferActivity
        fields = [
            'id', 'kind', 'from_status', 'to_status', 'from_stage', 'to_stage',
            'notes', 'user', 'user_name', 'created_at',
        ]
        read_only_fields = fields


class OfferStatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OfferStatus.choices, required=False)
    stage = serializers.ChoiceField(choices=OfferStage.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not attrs.get('status') and not attrs.get('stage'):
            raise serializers.ValidationError('Provide a status, a stage or both.')
        return attrs


class OfferNoteSerializer(serializers.Serializer):
    content = serializers.CharField()


class NextReferenceSerializer(serializers.Serializer):
    zone = serializers.PrimaryKeyRelatedField(queryset=ServiceZone.objects.filter(is_active=True))
    product_type = serializers.ChoiceField(choices=ProductType.choices)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

class TargetSerializer(serializers.ModelSerializer):
    zone_name = serializers.CharField(source='zone.name', read_only=True, default=None)
    user_name = serializers.CharField(source='user.name', read_only=True, default=None)

    class Meta:
        model = Target
        fields = [
            'id', 'scope', 'zone', 'zone_name', 'user', 'user_name',
            'period_type', 'target_period', 'product_type',
            'target_value', 'target_offer_count',
            'created_by', 'updated_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'zone_name', 'user_name', 'created_by', 'updated_by', 'created_at', 'updated_at']
        # Uniqueness is checked in validate() because the constraints are conditional.
        validators = []

    def validate(self, attrs):
        instance = Target(**{
            **({f: getattr(self.instance, f) for f in (
                'scope', 'zone', 'user', 'period_type', 'target_period',
                'product_type', 'target_value', 'target_offer_count',
            )} if self.instance else {}),
            **attrs,
        })
        try:
            instance.clean()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(getattr(exc, 'message_dict', None) or exc.messages)

        duplicates = Target.objects.filter(
            scope=instance.scope,
            zone=instance.zone,
            user=instance.user,
            period_type=instance.period_type,
            target_period=instance.target_period,
            product_type=instance.product_type,
        )
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError('A target already exists for this owner, period and product type.')
        return attrs
