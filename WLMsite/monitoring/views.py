import logging
from datetime import timedelta

from django.contrib import messages
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from .dashboard import build_dashboard
from .entry import build_form, submit_form
from .exceptions import AuthError, DuplicateSubmission, EntryValidationError, FetchError, NetworkError
from .forms import HourlyReportForm, PeriodReportForm
from .models import Role
from .registry import get_location, list_locations, location_to_dict
from .reports import (
    ReportKind,
    export_csv,
    export_filename,
    export_summary_csv,
    fetch_hourly_report,
    get_kind,
    last_report,
    remember_report,
    serialize_rows,
    summarize_rollups,
)
from .session_gate import current_identity, end_session, role_required, submit_credentials
from .thresholds import evaluate_for_location

logger = logging.getLogger(__name__)

ENTRY_TEMPLATES = {
    ReportKind.WATER_LEVEL: {
        'title': 'Water Level Measurement Entry',
        'description': 'Record water level measurements for monitoring locations',
        'submit_label': 'Record Water Level',
        'value_field': 'water_level',
        'success': 'Water level measurement recorded successfully',
        'url_name': 'water_level_entry',
    },
    ReportKind.RAINFALL: {
        'title': 'Rainfall Measurement Entry',
        'description': 'Record rainfall measurements for monitoring locations',
        'submit_label': 'Record Rainfall',
        'value_field': 'rainfall_amount',
        'success': 'Rainfall measurement recorded successfully',
        'url_name': 'rainfall_entry',
    },
}


def _csv_response(content, filename):
    response = HttpResponse(content, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# --- Session Gate ---------------------------------------------------------

def landing_page_view(request):
    if current_identity(request) is not None:
        return redirect('home')
    return render(request, 'monitoring/landing.html')


def login_view(request):
    if current_identity(request) is not None:
        return redirect('home')

    identifier = ''
    if request.method == 'POST':
        identifier = request.POST.get('username', '')
        try:
            identity = submit_credentials(request, identifier, request.POST.get('password', ''))
        except AuthError as e:
            messages.error(request, f"Login Failed: {e}")
        else:
            messages.success(request, f"Welcome back, {identity.name}!")
            return redirect('home')

    return render(request, 'monitoring/login.html', {'username': identifier})


@require_POST
def logout_view(request):
    return redirect(end_session(request))


# --- Pages ----------------------------------------------------------------

@role_required()
def home_page_view(request):
    context = {
        'today': timezone.now(),
        'location_count': list_locations().count(),
    }
    return render(request, 'monitoring/home.html', context)


@role_required()
def dashboard_view(request):
    context = build_dashboard()
    if context['fetch_error']:
        messages.error(request, "Failed to load aggregated data")
    return render(request, 'monitoring/dashboard.html', context)


def _entry_view(request, kind):
    config = ENTRY_TEMPLATES[kind]
    if request.method == 'POST':
        form = build_form(kind, request.POST)
        try:
            measurement = submit_form(request.user, form)
        except DuplicateSubmission as e:
            messages.info(request, str(e))
            return redirect(config['url_name'])
        except EntryValidationError as e:
            messages.error(request, str(e))
        except AuthError as e:
            messages.error(request, f"Access Denied: {e}")
            return redirect('home')
        except NetworkError:
            messages.error(request, "Failed to record measurement")
        else:
            messages.success(request, f"{config['success']} ({measurement.location.name})")
            # redirect = reset ฟอร์มกลับเป็นค่าเริ่มต้น พร้อม token ใหม่
            return redirect(config['url_name'])
    else:
        form = build_form(kind)

    context = {
        'form': form,
        'kind': kind.value,
        'config': config,
        'locations': [location_to_dict(location) for location in list_locations()],
    }
    return render(request, 'monitoring/entry.html', context)


@role_required(Role.ADMIN, Role.OFFICER)
def water_level_entry_view(request):
    return _entry_view(request, ReportKind.WATER_LEVEL)


@role_required(Role.ADMIN, Role.OFFICER)
def rainfall_entry_view(request):
    return _entry_view(request, ReportKind.RAINFALL)


def _default_range():
    today = timezone.localdate()
    return {'start_date': today - timedelta(days=1), 'end_date': today}


@role_required()
def hourly_reports_view(request):
    """Generate both hourly reports; on failure keep showing the last good ones."""
    if 'start_date' in request.GET:
        form = HourlyReportForm(request.GET)
        if form.is_valid():
            params = {
                'start_date': form.cleaned_data['start_date'].isoformat(),
                'end_date': form.cleaned_data['end_date'].isoformat(),
                'location': form.location_filter(),
            }
            try:
                fetched = {
                    kind: fetch_hourly_report(
                        kind, params['start_date'], params['end_date'], params['location'],
                    )
                    for kind in ReportKind
                }
            except (FetchError, EntryValidationError) as e:
                logger.warning("Hourly report generation failed: %s", e)
                messages.error(request, "Failed to generate reports")
            else:
                for kind, rows in fetched.items():
                    remember_report(request.session, kind, rows, params)
                messages.success(request, "Hourly reports generated successfully")
    else:
        form = HourlyReportForm(initial=_default_range())

    water_rows, water_params = last_report(request.session, ReportKind.WATER_LEVEL)
    rain_rows, rain_params = last_report(request.session, ReportKind.RAINFALL)
    context = {
        'form': form,
        'water_level_rows': water_rows,
        'rainfall_rows': rain_rows,
        'report_params': water_params or rain_params,
    }
    return render(request, 'monitoring/hourly_reports.html', context)


@role_required()
def export_hourly_report_view(request, kind):
    """CSV of the last fetched rollups for ``kind``."""
    try:
        kind = get_kind(kind)
    except EntryValidationError as e:
        messages.error(request, str(e))
        return redirect('hourly_reports')

    rows, _params = last_report(request.session, kind)
    if not rows:
        messages.info(request, "There is no report data to export yet")
        return redirect('hourly_reports')
    return _csv_response(export_csv(kind, rows), export_filename(kind))


@role_required()
def reports_view(request):
    """Daily/weekly/monthly summaries built from the hourly rollups."""
    summaries = {kind.value: [] for kind in ReportKind}
    if 'start_date' in request.GET:
        form = PeriodReportForm(request.GET)
    else:
        today = timezone.localdate()
        form = PeriodReportForm(data={
            'start_date': (today - timedelta(days=29)).isoformat(),
            'end_date': today.isoformat(),
            'period': 'daily',
        })

    if form.is_valid():
        start = form.cleaned_data['start_date']
        end = form.cleaned_data['end_date']
        period = form.cleaned_data['period']
        try:
            for kind in ReportKind:
                rows = fetch_hourly_report(kind, start, end, form.location_filter())
                summaries[kind.value] = summarize_rollups(kind, rows, period)
        except (FetchError, EntryValidationError) as e:
            logger.warning("Period report failed: %s", e)
            messages.error(request, "Failed to generate reports")
            summaries = {kind.value: [] for kind in ReportKind}
        else:
            export_kind = request.GET.get('export')
            if export_kind in summaries:
                tag = f"{export_kind}-{period}-report"
                return _csv_response(
                    export_summary_csv(export_kind, summaries[export_kind]),
                    export_filename(export_kind, tag=tag),
                )

    context = {
        'form': form,
        'water_level_summary': summaries[ReportKind.WATER_LEVEL.value],
        'rainfall_summary': summaries[ReportKind.RAINFALL.value],
        'query_string': request.GET.urlencode(),
    }
    return render(request, 'monitoring/reports.html', context)


# --- JSON API -------------------------------------------------------------

def _api_identity(request):
    identity = current_identity(request)
    if identity is None:
        return None, JsonResponse({'error': 'User not authenticated'}, status=401)
    return identity, None


@require_GET
def api_locations(request):
    _identity, denied = _api_identity(request)
    if denied:
        return denied
    return JsonResponse({'locations': [location_to_dict(location) for location in list_locations()]})


@require_GET
def api_level_status(request):
    """Inline threshold feedback for the entry form; never an error for bad input."""
    _identity, denied = _api_identity(request)
    if denied:
        return denied
    location = get_location(request.GET.get('location'))
    status = evaluate_for_location(request.GET.get('level'), location)
    if status is None:
        return JsonResponse({'status': None, 'message': None})
    return JsonResponse({'status': status.value, 'message': status.label})


@require_GET
def api_hourly_report(request, kind):
    _identity, denied = _api_identity(request)
    if denied:
        return denied
    try:
        rows = fetch_hourly_report(
            kind,
            request.GET.get('start_date', ''),
            request.GET.get('end_date', ''),
            request.GET.get('location'),
        )
    except EntryValidationError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except FetchError as e:
        return JsonResponse({'error': str(e)}, status=502)
    return JsonResponse({'kind': kind, 'count': len(rows), 'rows': serialize_rows(rows)})
