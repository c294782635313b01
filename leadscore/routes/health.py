"""
Health routes — liveness and circuit-breaker state for external services.
"""
from flask import Blueprint, jsonify

from leadscore.services.circuit_breaker import get_all_breakers

bp = Blueprint('health', __name__)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/health')
def api_health():
    """Circuit breaker state for every registered external service."""
    services = {name: breaker.get_health() for name, breaker in get_all_breakers().items()}
    return jsonify({'status': 'success', 'services': services})


@bp.route('/api/health/<service>/reset', methods=['POST'])
def reset_circuit(service):
    breaker = get_all_breakers().get(service)
    if breaker is None:
        return jsonify({'status': 'error', 'message': f'Unknown service: {service}'}), 404
    breaker.reset()
    return jsonify({'status': 'success', 'ok': True, 'service': service, 'state': breaker.state})
