"""
Flask Application for Email Verification API

Provides REST API endpoints for single and bulk email verification.
"""

import io
import logging
import os

from flask import Flask, Response, g, jsonify, request, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from mailverify import (
    ArtifactStore,
    DNSCache,
    DNSService,
    DomainValidator,
    EmailExtractor,
    EmailValidator,
    FileProcessor,
)
from mailverify.config import (
    API_VERSION,
    BASE_PATH,
    MAX_FILE_SIZE_MB,
    MIME_TYPES,
    SUPPORTED_FORMATS,
    ErrorCodes,
    Messages,
    Settings,
)
from mailverify.dns_service import DNSServiceBase
from mailverify.errors import (
    AppError,
    InvalidRequestError,
    ValidationError,
    get_status_code,
    to_api_error,
)
from mailverify.responses import generate_id, to_batch_result_object, to_email_object
from mailverify.spreadsheet import generate_filename

logger = logging.getLogger(__name__)

XLSX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _client_info() -> dict:
    return {
        'ip': request.headers.get('X-Forwarded-For') or request.headers.get('X-Real-IP') or request.remote_addr,
        'user_agent': request.headers.get('User-Agent', 'unknown'),
    }


def _bool_option(options: dict, name: str, default: bool) -> bool:
    value = options.get(name, default)
    if not isinstance(value, bool):
        raise InvalidRequestError(f"options.{name} must be a boolean", param=f'options.{name}')
    return value


def create_app(settings: Settings = None, dns_service: DNSServiceBase = None) -> Flask:
    """
    Build the Flask application and its service graph.

    Args:
        settings: Runtime settings; read from the environment when omitted
        dns_service: DNS service to use instead of the real resolver

    Returns:
        Configured Flask application
    """
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    # Headroom over the file limit for multipart framing; larger bodies are refused unread.
    app.config['MAX_CONTENT_LENGTH'] = (MAX_FILE_SIZE_MB + 1) * 1024 * 1024
    CORS(app, expose_headers=['X-Request-Id', 'X-API-Version'])

    cache = DNSCache(ttl=settings.cache_ttl, negative_ttl=settings.negative_cache_ttl)
    domain_validator = DomainValidator(
        dns_service or DNSService(timeout=settings.dns_timeout),
        cache,
        timeout=settings.dns_timeout,
    )
    validator = EmailValidator(domain_validator, check_smtp=settings.check_smtp)
    artifacts = ArtifactStore(settings.artifact_dir)
    processor = FileProcessor(
        EmailExtractor(max_emails=settings.max_emails),
        validator,
        artifact_store=artifacts,
        chunk_size=settings.chunk_size,
        delay_ms=settings.delay_ms,
    )

    app.extensions['mailverify'] = {
        'settings': settings,
        'cache': cache,
        'validator': validator,
        'processor': processor,
        'artifacts': artifacts,
    }

    def error_response(error: BaseException):
        status = get_status_code(error)
        context = f"request_id={g.get('request_id')} endpoint={request.path} client={_client_info()}"
        if status >= 500:
            logger.error(f"API error ({context}): {error}", exc_info=error)
        else:
            logger.warning(f"Request rejected ({context}): {error}")
        return jsonify({'error': to_api_error(error, production=settings.is_production)}), status

    @app.before_request
    def assign_request_id():
        g.request_id = generate_id('req')

    @app.after_request
    def add_tracing_headers(response: Response) -> Response:
        response.headers['X-Request-Id'] = g.get('request_id') or generate_id('req')
        response.headers['X-API-Version'] = API_VERSION
        return response

    @app.route('/health', methods=['GET'])
    def health_check():
        """
        Health check endpoint.

        Returns:
            JSON response with status
        """
        return jsonify({
            'status': 'healthy',
            'service': 'email-verifier',
            'dns_cache': cache.stats(),
        }), 200

    async def verify(email, options: dict):
        if email is None or email == '':
            raise ValidationError(Messages.EMAIL_REQUIRED, code=ErrorCodes.INVALID_PARAMETERS, param='email')
        if not isinstance(email, str):
            raise InvalidRequestError('email must be a string', param='email')
        if not isinstance(options, dict):
            raise InvalidRequestError('options must be an object', param='options')

        # check_mx is accepted for compatibility; every verification queries MX records.
        _bool_option(options, 'check_mx', True)
        check_smtp = _bool_option(options, 'check_smtp', settings.check_smtp)

        result = await validator.validate_email(email, check_smtp=check_smtp)
        return jsonify(to_email_object(result, livemode=settings.is_production)), 200

    @app.route(f'{BASE_PATH}/emails/verify', methods=['POST'])
    async def verify_email_post():
        """
        Verify one email address.

        Request Body:
            {
                "email": "user@example.com",
                "options": {"check_mx": true, "check_smtp": false}
            }
        """
        if not request.is_json:
            raise InvalidRequestError('Content-Type must be application/json', status_code=415)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise InvalidRequestError('Invalid JSON body')

        return await verify(data.get('email'), data.get('options') or {})

    @app.route(f'{BASE_PATH}/emails/verify', methods=['GET'])
    async def verify_email_get():
        """Verify one email address given as the ``email`` query parameter."""
        return await verify(request.args.get('email'), {})

    @app.route(f'{BASE_PATH}/emails/batch', methods=['POST'])
    async def verify_batch():
        """
        Extract and verify every email address in an uploaded spreadsheet.

        Form Data:
            file: .xlsx, .xls or .csv upload
            generate_excel: "true" to store a results workbook for download
        """
        upload = request.files.get('file')
        if upload is None or not upload.filename:
            raise ValidationError(Messages.FILE_REQUIRED, code=ErrorCodes.INVALID_PARAMETERS, param='file')

        generate_excel = request.form.get('generate_excel', 'false').lower() == 'true'
        result = await processor.process_and_validate(
            upload.filename,
            upload.mimetype or '',
            upload.read(),
            generate_excel=generate_excel,
        )
        return jsonify(to_batch_result_object(result, livemode=settings.is_production)), 200

    @app.route(f'{BASE_PATH}/emails/batch', methods=['GET'])
    def batch_info():
        """Describe supported upload formats and limits."""
        return jsonify({
            'object': 'batch_info',
            'supported_formats': list(SUPPORTED_FORMATS),
            'limits': {
                'max_file_size_mb': MAX_FILE_SIZE_MB,
                'max_emails_per_batch': settings.max_emails,
            },
            'mime_types': MIME_TYPES,
        }), 200

    @app.route(f'{BASE_PATH}/emails/batch/download', methods=['GET'])
    def download_batch():
        """Serve a generated results workbook once, then delete it."""
        artifact_id = request.args.get('id')
        if not artifact_id:
            raise InvalidRequestError('File ID is required', code=ErrorCodes.MISSING_FILE_ID, param='id')

        data = artifacts.pop(artifact_id)
        response = send_file(
            io.BytesIO(data),
            mimetype=XLSX_MIME_TYPE,
            as_attachment=True,
            download_name=generate_filename(),
        )
        response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        return response

    @app.errorhandler(AppError)
    def handle_app_error(error):
        return error_response(error)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return error_response(InvalidRequestError(
            'Endpoint not found', code=ErrorCodes.NOT_FOUND, status_code=404))

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return error_response(InvalidRequestError(
            'Method not allowed', code=ErrorCodes.METHOD_NOT_ALLOWED, status_code=405))

    @app.errorhandler(413)
    def request_too_large(error):
        """Handle request bodies over MAX_CONTENT_LENGTH."""
        return error_response(InvalidRequestError(
            Messages.FILE_TOO_LARGE, code=ErrorCodes.FILE_TOO_LARGE, param='file', status_code=413))

    @app.errorhandler(HTTPException)
    def http_error(error):
        return error_response(InvalidRequestError(
            error.description or error.name, status_code=error.code or 400))

    @app.errorhandler(Exception)
    def internal_error(error):
        """Handle unexpected errors."""
        return error_response(error)

    return app


logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(levelname)s - %(name)s: %(message)s',
)

app = create_app()


if __name__ == '__main__':
    # Get port from environment or use default
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting Email Verification API on port {port}")
    app.run(host='0.0.0.0', port=port, debug=debug)
