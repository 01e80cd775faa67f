#!/usr/bin/env python3
"""Local development server for Estimate Inbox.

Usage:
    cd functions
    source venv/bin/activate
    python serve_local.py

This will start a Flask server (port from PORT, default 8080) that handles:
- POST   /api/submit-estimate -> submit_estimate
- GET    /api/estimates       -> list estimates + newCount
- PATCH  /api/estimates       -> markAsRead / markAllAsRead
- DELETE /api/estimates?id=   -> delete one estimate
"""

from flask import Flask, request, jsonify
from flask_cors import CORS

from config.settings import settings
from main import submit_estimate, estimates
from utils.logging_config import configure_logging

app = Flask(__name__)
CORS(app, origins=settings.cors_allow_origin)


@app.route('/api/submit-estimate', methods=['POST', 'OPTIONS'])
def handle_submit_estimate():
    return submit_estimate(request)


@app.route('/api/estimates', methods=['GET', 'PATCH', 'DELETE', 'OPTIONS'])
def handle_estimates():
    return estimates(request)


# Health check
@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'service': 'estimate-inbox'})


if __name__ == '__main__':
    configure_logging()
    settings.validate()
    port = settings.port
    print(f"""
╔════════════════════════════════════════════════════════════════╗
║  Estimate Inbox - Local Development Server                     ║
╠════════════════════════════════════════════════════════════════╣
║                                                                ║
║  Server running on: http://127.0.0.1:{port:<26}║
║  Snapshot file    : {settings.estimates_data_path[:42]:<43}║
║  SMS notification : {('enabled' if settings.sms_enabled else 'disabled'):<43}║
║                                                                ║
║  Endpoints:                                                    ║
║  • POST   /api/submit-estimate                                 ║
║  • GET    /api/estimates                                       ║
║  • PATCH  /api/estimates                                       ║
║  • DELETE /api/estimates?id=...                                ║
║                                                                ║
╚════════════════════════════════════════════════════════════════╝
""")
    app.run(host='127.0.0.1', port=port, debug=True, threaded=True)
