"""
Flask Application for Email Validation API

Provides REST API endpoints for email syntax checks and domain resolution.
"""

import logging
import os
from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import Flask, request, jsonify
from flask_cors import CORS

from email_check import EmailValidator, DNSService, DomainChecker

# Configuration
CHECK_DNS = os.environ.get('CHECK_DNS', 'false').lower() == 'true'
DNS_TIMEOUT = float(os.environ.get('DNS_TIMEOUT', 5))
DNS_RESOLVER = os.environ.get('DNS_RESOLVER', 'dnspython').lower()
DNS_WORKERS = int(os.environ.get('DNS_WORKERS', 4))
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
# How long a request waits on a check before answering 504
CHECK_WAIT = DNS_TIMEOUT + 1

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

# Create Flask application
app = Flask(__name__)
CORS(app)

# Initialize validator and checker
validator = EmailValidator()
dns_service = DNSService(timeout=DNS_TIMEOUT, use_system_resolver=DNS_RESOLVER == 'system')
checker = DomainChecker(dns_service=dns_service, timeout=DNS_TIMEOUT, max_workers=DNS_WORKERS)


def _json_body():
    """
    Return (data, error_response) for the current request.

    Exactly one of the two is None.
    """
    if not request.is_json:
        return None, (jsonify({
            'error': 'Content-Type must be application/json'
        }), 415)

    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return None, (jsonify({
            'error': 'Invalid JSON body'
        }), 400)
    return data, None


def _check(email):
    """Run the combined check and wait for it, bounded by CHECK_WAIT."""
    future = checker.check_email_address(email)
    try:
        return future.result(timeout=CHECK_WAIT)
    except FutureTimeoutError:
        future.cancel()
        raise


def _timed_out(email):
    logger.warning("Check for %r did not complete in time", email)
    return jsonify({
        'error': 'Check timed out'
    }), 504


@app.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON response with status
    """
    return jsonify({
        'status': 'healthy',
        'service': 'email-check',
        'check_dns': CHECK_DNS,
        'dns_resolver': DNS_RESOLVER
    }), 200


@app.route('/validate', methods=['POST'])
def validate_email():
    """
    Validate an email address.

    Request Body:
        {
            "email": "user@example.com"
        }

    Returns:
        JSON response with validation result:
        {
            "is_valid": false,
            "email": "user@example.1",
            "error": {"kind": "INVALID_TLD", "code": 9, "offset": 13, ...},
            "literal_domain": false
        }

        With CHECK_DNS enabled, well formed addresses are answered with the
        combined check result instead.
    """
    data, error_response = _json_body()
    if error_response:
        return error_response

    # Get email from request
    email = data.get('email')

    if email is None:
        return jsonify({
            'error': 'Missing required field: email'
        }), 400

    if not isinstance(email, str):
        return jsonify({
            'error': 'email must be a string'
        }), 400

    result = validator.validate(email)
    if CHECK_DNS and result.is_valid:
        try:
            return jsonify(_check(email).to_dict()), 200
        except FutureTimeoutError:
            return _timed_out(email)

    return jsonify(result.to_dict()), 200


@app.route('/validate/batch', methods=['POST'])
def validate_batch():
    """
    Validate multiple email addresses.

    Request Body:
        {
            "emails": ["user1@example.com", "user2@example.com"]
        }

    Returns:
        JSON response with validation results:
        {
            "results": [...],
            "total": 2,
            "valid_count": 2,
            "invalid_count": 0
        }
    """
    data, error_response = _json_body()
    if error_response:
        return error_response

    # Get emails from request
    emails = data.get('emails')

    if emails is None:
        return jsonify({
            'error': 'Missing required field: emails'
        }), 400

    if not isinstance(emails, list):
        return jsonify({
            'error': 'emails must be an array'
        }), 400

    if len(emails) == 0:
        return jsonify({
            'error': 'emails array cannot be empty'
        }), 400

    if not all(isinstance(email, str) for email in emails):
        return jsonify({
            'error': 'emails must contain only strings'
        }), 400

    # Validate emails
    results = validator.validate_batch(emails)

    # Count valid and invalid
    valid_count = sum(1 for r in results if r.is_valid)
    invalid_count = len(results) - valid_count

    return jsonify({
        'results': [r.to_dict() for r in results],
        'total': len(results),
        'valid_count': valid_count,
        'invalid_count': invalid_count
    }), 200


@app.route('/check', methods=['POST'])
def check_email():
    """
    Check syntax and resolve the domain of an email address.

    Request Body:
        {
            "email": "user@example.com"
        }

    Returns:
        JSON response with the check result:
        {
            "email": "user@example.com",
            "is_valid": true,
            "outcome": "resolved",
            "error": null,
            "addresses": ["93.184.216.34"]
        }
    """
    data, error_response = _json_body()
    if error_response:
        return error_response

    email = data.get('email')

    if email is None:
        return jsonify({
            'error': 'Missing required field: email'
        }), 400

    if not isinstance(email, str):
        return jsonify({
            'error': 'email must be a string'
        }), 400

    try:
        result = _check(email)
    except FutureTimeoutError:
        return _timed_out(email)

    return jsonify(result.to_dict()), 200


@app.route('/quick-check', methods=['GET'])
def quick_check():
    """
    Quick email validation check via GET request.

    Query Parameters:
        email: Email address to validate

    Returns:
        JSON response with simple valid/invalid status.
    """
    email = request.args.get('email')

    if email is None:
        return jsonify({
            'error': 'Missing required query parameter: email'
        }), 400

    # Simple validation
    is_valid = validator.is_valid(email)

    return jsonify({
        'email': email,
        'is_valid': is_valid
    }), 200


@app.errorhandler(404)
def not_found(error):
    """Handle 404 errors."""
    return jsonify({
        'error': 'Endpoint not found'
    }), 404


@app.errorhandler(405)
def method_not_allowed(error):
    """Handle 405 errors."""
    return jsonify({
        'error': 'Method not allowed'
    }), 405


@app.errorhandler(500)
def internal_error(error):
    """Handle 500 errors."""
    return jsonify({
        'error': 'Internal server error'
    }), 500


if __name__ == '__main__':
    # Get port from environment or use default
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info("Starting Email Check API on port %d", port)
    logger.info("DNS check enabled: %s (resolver: %s)", CHECK_DNS, DNS_RESOLVER)

    app.run(host='0.0.0.0', port=port, debug=debug)
