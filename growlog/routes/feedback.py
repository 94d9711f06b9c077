import logging
import requests
from flask import current_app
from flask_restx import Namespace, Resource, fields

logger = logging.getLogger(__name__)

feedback_ns = Namespace('feedback', description='User feedback forwarded to the GitHub issue tracker')

GITHUB_API_URL = 'https://api.github.com'
FEEDBACK_LABEL = 'user-feedback'
REQUEST_TIMEOUT = 15

feedback_input_model = feedback_ns.model('FeedbackInput', {
    'title': fields.String(required=True, min_length=1),
    'description': fields.String(required=True),
    'label': fields.String(description='Extra GitHub label, e.g. bug or enhancement')
})

feedback_result_model = feedback_ns.model('FeedbackResult', {
    'success': fields.Boolean,
    'issue_url': fields.String
})


def build_issue(title, description, label=None):
    labels = [label, FEEDBACK_LABEL] if label else [FEEDBACK_LABEL]
    return {
        'title': f"[Feedback] {title}",
        'body': f"{description}\n\n*Submitted via GrowLog App*",
        'labels': labels
    }


def submit_issue(token, owner, repo, issue):
    headers = {
        'Authorization': f'Bearer {token}',
        'Accept': 'application/vnd.github.v3+json',
        'User-Agent': 'GrowLog-App'
    }
    url = f"{GITHUB_API_URL}/repos/{owner}/{repo}/issues"
    response = requests.post(url, headers=headers, json=issue, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


@feedback_ns.route('/feedback')
class Feedback(Resource):
    # post: no auth, the app shows the button before login too
    @feedback_ns.expect(feedback_input_model, validate=True)
    @feedback_ns.response(503, 'feedback disabled')
    def post(self):
        config = current_app.config
        token = config.get('GITHUB_TOKEN')
        if not token:
            feedback_ns.abort(503, error='Feedback submission is currently disabled (No GitHub Token configured).')

        data = feedback_ns.payload
        issue = build_issue(data['title'], data['description'], data.get('label'))
        try:
            created = submit_issue(token, config['GITHUB_OWNER'], config['GITHUB_REPO'], issue)
        except requests.RequestException as exc:
            logger.error("GitHub issue submission failed: %s", exc)
            feedback_ns.abort(500, error='Failed to submit feedback')

        return {'success': True, 'issue_url': created.get('html_url')}


@feedback_ns.route('/config/features')
class Features(Resource):
    def get(self):
        return {'features': {'feedback': bool(current_app.config.get('GITHUB_TOKEN'))}}
