"""
HTML pages: the scanner and the settings form
"""
from flask import Blueprint, current_app, render_template

pages_bp = Blueprint('pages', __name__)

# Defaults the settings page starts from before anything is saved locally
DEFAULT_CLIENT_SETTINGS = {
    'dbType': 'postgres',
    'dbServer': 'localhost',
    'dbPort': '5432',
    'dbName': 'barcode_scanner',
    'dbUser': 'postgres',
    'dbPassword': '',
    'dbSsl': False,
    'dbEncrypt': False,
    'dbTrustServerCert': False,
    'barcodeTable': 'barcodes',
    'barcodeColumn': 'barcode',
    'productCodeColumn': 'product_code',
    'productsTable': 'products',
    'productsCodeColumn': 'product_code',
    'productsNameColumn': 'product_name',
    'productsImageColumn': 'product_image',
    'productsPrice1Column': 'price1',
    'productsPrice2Column': 'price2',
    'productsPrice3Column': 'price3',
}


def _page_context():
    return {
        'api_base_url': current_app.config['API_BASE_URL'],
        'default_settings': DEFAULT_CLIENT_SETTINGS,
    }


@pages_bp.route('/')
def index():
    """Scanner page."""
    return render_template('index.html', **_page_context())


@pages_bp.route('/settings')
def settings():
    """Settings page."""
    return render_template('settings.html', **_page_context())
