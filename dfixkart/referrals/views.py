import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Count, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from dfixkart.core.exceptions import ApiError
from dfixkart.core.models import User
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log
from .models import Referral
from .serializers import ReferralSerializer, ApplyReferralSerializer, ReferralStatusSerializer
from .services import ensure_referral_code

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_referral_code(request):
    code = ensure_referral_code(request.user)
    return api_response({'referral_code': code}, 'Referral code retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_referral_stats(request):
    ensure_referral_code(request.user)
    referrals = Referral.objects.filter(referrer=request.user).select_related('referrer', 'referred', 'order')
    completed = referrals.filter(status=Referral.STATUS_COMPLETED)
    earnings = completed.aggregate(total=Sum('reward_amount'))['total'] or 0

    return api_response({
        'referral_code': request.user.referral_code,
        'total_referrals': referrals.count(),
        'completed_referrals': completed.count(),
        'pending_referrals': referrals.filter(status=Referral.STATUS_PENDING).count(),
        'total_earnings': earnings,
        'referrals': ReferralSerializer(referrals, many=True).data,
    }, 'Referral stats retrieved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def apply_referral_code(request):
    serializer = ApplyReferralSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    code = serializer.validated_data['code'].strip().upper()
    referrer = User.objects.filter(referral_code=code, is_active=True).first()
    if referrer is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Invalid referral code')
    if referrer.pk == request.user.pk:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'You cannot use your own referral code')
    if Referral.objects.filter(referred=request.user).exists():
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'A referral code has already been applied to your account')

    referral = Referral.objects.create(referrer=referrer, referred=request.user, code=code)
    logger.info(f"Referral {referral.id}: user {request.user.id} referred by {referrer.id}")
    return api_response(ReferralSerializer(referral).data, 'Referral code applied successfully', status.HTTP_201_CREATED)


# ==================== ADMIN ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('referrals', 'read')])
def admin_referral_list(request):
    queryset = Referral.objects.select_related('referrer', 'referred', 'order')

    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter.upper())
    search = request.query_params.get('search')
    if search:
        queryset = queryset.filter(
            Q(code__icontains=search) |
            Q(referrer__username__icontains=search) | Q(referrer__email__icontains=search) |
            Q(referred__username__icontains=search) | Q(referred__email__icontains=search)
        )

    referrals, pagination = paginate_queryset(queryset, request, default_limit=20)
    return api_response({
        'referrals': ReferralSerializer(referrals, many=True).data,
        'pagination': pagination,
    }, 'Referrals retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('referrals', 'read')])
def admin_referral_stats(request):
    status_breakdown = {
        row['status']: row['count']
        for row in Referral.objects.values('status').annotate(count=Count('id'))
    }
    completed = Referral.objects.filter(status=Referral.STATUS_COMPLETED)
    top_referrers = completed.values(
        'referrer_id', 'referrer__username', 'referrer__email', 'referrer__referral_code'
    ).annotate(
        total_referrals=Count('id'), total_earnings=Sum('reward_amount')
    ).order_by('-total_referrals')[:10]

    return api_response({
        'total_referrals': Referral.objects.count(),
        'status_breakdown': status_breakdown,
        'completed_referrals': completed.count(),
        'total_rewards_paid': completed.aggregate(total=Sum('reward_amount'))['total'] or 0,
        'top_referrers': [
            {
                'user': {
                    'id': row['referrer_id'],
                    'username': row['referrer__username'],
                    'email': row['referrer__email'],
                    'referral_code': row['referrer__referral_code'],
                },
                'total_referrals': row['total_referrals'],
                'total_earnings': row['total_earnings'] or 0,
            }
            for row in top_referrers
        ],
    }, 'Referral statistics retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('referrals', 'read')])
def admin_referral_detail(request, pk):
    referral = get_object_or_404(Referral.objects.select_related('referrer', 'referred', 'order'), pk=pk)
    return api_response(ReferralSerializer(referral).data, 'Referral retrieved successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, require_permission('referrals', 'update')])
def admin_referral_status(request, pk):
    referral = get_object_or_404(Referral, pk=pk)
    serializer = ReferralStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    old_status = referral.status
    if 'status' in data:
        referral.status = data['status']
        if referral.status == Referral.STATUS_COMPLETED and not referral.completed_at:
            referral.completed_at = timezone.now()
    if 'reward_amount' in data:
        referral.reward_amount = data['reward_amount']
    referral.save()

    create_audit_log(request, 'referral_status', 'Referral', referral.id, object_name=referral.code,
                     changes={'status': {'old': old_status, 'new': referral.status},
                              'reward_amount': str(referral.reward_amount) if referral.reward_amount is not None else None})
    return api_response(ReferralSerializer(referral).data, 'Referral updated successfully')
