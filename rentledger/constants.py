from zoneinfo import ZoneInfo

VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")

RENT_LINE_NAME = "Tiền nhà"
RENT_UNIT = "tháng"
TERMINATION_LINE_NAME = "Thanh lý hợp đồng"

ELECTRIC_KEYWORD = "điện"
WATER_KEYWORD = "nước"
VOLUMETRIC_UNITS = ("m³", "m3", "khối")

LINE_TYPE_LABELS = {
    "rent": "Tiền nhà",
    "electric": "Điện",
    "water_meter": "Nước (đồng hồ)",
    "service": "Dịch vụ",
    "custom": "Khác",
    "termination": "Thanh lý",
}

STATUS_LABELS = {
    "unpaid": "Chưa thu",
    "paid": "Đã thu",
    "terminated": "Thanh lý",
}

DEFAULT_PAYER = "Khách hàng"
TRANSACTION_TITLE = "Thu tiền phòng {building_code} - {room} - Tháng {period}"

BILL_APPROVED_TITLE = "Thông báo hóa đơn"
BILL_APPROVED_MESSAGE = "Hóa đơn tháng {period}-{year} cho phòng {building_code}-{room} đã được duyệt"
BILL_APPROVED_CUSTOMER_MESSAGE = (
    "Bạn có hóa đơn tiền nhà tháng {period}-{year} cần thanh toán. Vui lòng kiểm tra và thanh toán đúng hạn."
)

PAYMENT_COLLECTED_TITLE = "Thu tiền thành công"
PAYMENT_COLLECTED_MESSAGE = (
    "Đã thu tiền từ khách hàng {customer_name} - Phòng {building_code}-{room} - "
    "Tháng {period}-{year}. Số tiền: {amount}đ"
)
PAYMENT_COLLECTED_CUSTOMER_MESSAGE = "Đã thu tiền từ khách hàng {customer_name}"

PAYMENT_CONFIRMED_PUSH_TITLE = "✅ Thanh toán thành công"
PAYMENT_CONFIRMED_PUSH_BODY = "Cảm ơn bạn đã thanh toán hóa đơn tháng {period}-{year}. Số tiền: {amount}đ"


def format_period(period: int, year: int) -> str:
    return f"{period:02d}/{year}"
