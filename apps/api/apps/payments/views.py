"""
Payment endpoints (/api/payments/).

ADMIN and DOCTOR write; ASSISTANT reads.
"""
from rest_framework.views import APIView

from apps.authz.permissions import ReadAnyWriteDoctorOrAdmin
from apps.core.pagination import PagePagination
from apps.core.responses import api_response, created_response
from apps.payments import services
from apps.payments.serializers import (
    MarkPaidSerializer,
    PaymentFilterSerializer,
    PaymentPlanSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
    ReportFilterSerializer,
    UpcomingFilterSerializer,
)


class PaymentAPIView(APIView):
    permission_classes = [ReadAnyWriteDoctorOrAdmin]


class PaymentCreateView(PaymentAPIView):

    def post(self, request):
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.create_payment(serializer.validated_data, created_by=request.user)
        return created_response(
            data={'payment': PaymentSerializer(payment).data},
            message='Payment created successfully',
        )


class PaymentDetailView(PaymentAPIView):

    def get(self, request, payment_id):
        payment = services.get_payment(payment_id)
        return api_response(data={'payment': PaymentSerializer(payment).data}, message='Payment retrieved successfully')

    def put(self, request, payment_id):
        payment = services.get_payment(payment_id)
        serializer = PaymentSerializer(payment, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        payment = services.update_payment(payment_id, serializer.validated_data, actor=request.user)
        return api_response(data={'payment': PaymentSerializer(payment).data}, message='Payment updated successfully')

    def delete(self, request, payment_id):
        services.delete_payment(payment_id, actor=request.user)
        return api_response(message='Payment deleted successfully')


class PaymentStatusView(PaymentAPIView):

    def patch(self, request, payment_id):
        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.update_payment_status(
            payment_id,
            serializer.validated_data['status'],
            paid_date=serializer.validated_data.get('paid_date'),
            actor=request.user,
        )
        return api_response(
            data={'payment': PaymentSerializer(payment).data},
            message='Payment status updated successfully',
        )


class MarkPaidView(PaymentAPIView):

    def post(self, request, payment_id):
        serializer = MarkPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.mark_paid(
            payment_id,
            paid_date=serializer.validated_data.get('paid_date'),
            transaction_id=serializer.validated_data.get('transaction_id'),
            actor=request.user,
        )
        return api_response(
            data={'payment': PaymentSerializer(payment).data},
            message='Payment marked as paid successfully',
        )


class PatientPaymentsView(PaymentAPIView):

    def get(self, request, patient_id):
        filters = PaymentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        paginator = PagePagination()
        payments = paginator.paginate_queryset(
            services.list_patient_payments(patient_id, status=filters.validated_data.get('status')),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            PaymentSerializer(payments, many=True).data,
            'payments',
            message='Patient payments retrieved successfully',
        )


class TreatmentPlanPaymentsView(PaymentAPIView):

    def get(self, request, plan_id):
        payments, summary = services.get_plan_payments(plan_id)
        return api_response(
            data={'payments': PaymentSerializer(payments, many=True).data, 'summary': summary},
            message='Treatment plan payments retrieved successfully',
        )


class PaymentStatsView(PaymentAPIView):

    def get(self, request):
        return api_response(
            data={'stats': services.get_payment_stats()},
            message='Payment statistics retrieved successfully',
        )


class PaymentMethodsStatsView(PaymentAPIView):

    def get(self, request):
        return api_response(
            data={'payment_methods': services.get_method_stats()},
            message='Payment methods statistics retrieved successfully',
        )


class OverduePaymentsView(PaymentAPIView):

    def get(self, request):
        paginator = PagePagination()
        payments = paginator.paginate_queryset(services.overdue_queryset(), request, view=self)
        return paginator.get_paginated_response(
            PaymentSerializer(payments, many=True).data,
            'overdue_payments',
            message='Overdue payments retrieved successfully',
        )


class UpcomingPaymentsView(PaymentAPIView):

    def get(self, request):
        filters = UpcomingFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        payments = services.get_upcoming_payments(days=filters.validated_data['days'])
        return api_response(
            data={'upcoming_payments': PaymentSerializer(payments, many=True).data},
            message='Upcoming payments retrieved successfully',
        )


class PaymentReportView(PaymentAPIView):

    def get(self, request):
        filters = ReportFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        report = services.generate_report(filters.validated_data, generated_by=request.user)
        report['payments'] = PaymentSerializer(report['payments'], many=True).data
        return api_response(data={'report': report}, message='Payment report generated successfully')


class PaymentPlanView(PaymentAPIView):

    def post(self, request):
        serializer = PaymentPlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payments = services.create_payment_plan(
            data.get('treatmentPlanId'),
            data.get('totalAmount'),
            data.get('numberOfPayments'),
            first_payment_date=data.get('firstPaymentDate'),
            created_by=request.user,
        )
        return created_response(
            data={'payments': PaymentSerializer(payments, many=True).data},
            message=f'Payment plan created successfully with {len(payments)} payments',
        )
