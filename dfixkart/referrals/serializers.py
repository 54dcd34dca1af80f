from rest_framework import serializers
from .models import Referral


class ReferralUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    name = serializers.SerializerMethodField()

    def get_name(self, obj):
        return obj.get_full_name() or obj.username


class ReferralSerializer(serializers.ModelSerializer):
    referrer = ReferralUserSerializer(read_only=True)
    referred = ReferralUserSerializer(read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)

    class Meta:
        model = Referral
        fields = ['id', 'referrer', 'referred', 'code', 'status', 'reward_amount', 'order', 'order_number',
                  'completed_at', 'created_at', 'updated_at']


class ApplyReferralSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)


class ReferralStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Referral.STATUS_CHOICES, required=False)
    reward_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    def to_internal_value(self, data):
        if isinstance(data, dict) and isinstance(data.get('status'), str):
            data = {**data, 'status': data['status'].upper()}
        return super().to_internal_value(data)
