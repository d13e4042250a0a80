from django.http import JsonResponse

from apps.game.services import GameStore, StoreUnavailableError


def health_check(request):
    """Report service health, including game store reachability."""
    try:
        GameStore().ping()
    except StoreUnavailableError:
        return JsonResponse({
            'status': 'degraded',
            'game_store': 'unavailable',
        }, status=503)

    return JsonResponse({
        'status': 'ok',
        'game_store': 'ok',
    })


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
