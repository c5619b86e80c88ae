"""
User-facing messages (Vietnamese)
"""

# Validation
TIME_RANGE_REQUIRED = "Thời gian bắt đầu và kết thúc là bắt buộc"
INVALID_TIME_FORMAT = "Định dạng thời gian không hợp lệ"
INVALID_TIME_RANGE = "Thời gian bắt đầu phải nhỏ hơn thời gian kết thúc"
MISSING_REQUIRED_FIELDS = "Thiếu thông tin bắt buộc"
MISSING_ROOM_FIELDS = "Thiếu thông tin bắt buộc cho một hoặc nhiều phòng"
EMPTY_ROOM_LIST = "Thiếu thông tin bắt buộc hoặc danh sách phòng trống"
INVALID_PRICE = "Giá phòng không được âm"
INVALID_CAPACITY = "Sức chứa phải lớn hơn 0"
INVALID_ROOM_NAME = "Tên phòng là bắt buộc"
INVALID_ROOM_TYPE = "Loại phòng không hợp lệ. Phải là một trong: {types}"
NO_FIELDS_TO_UPDATE = "Không có trường hợp lệ để cập nhật"
INVALID_EXTEND_TIME = "Thời gian gia hạn phải lớn hơn thời gian kết thúc hiện tại"
INVALID_PAYMENT_AMOUNT = "Số tiền thanh toán phải lớn hơn 0"
INVALID_PAYMENT_METHOD = "Vui lòng chọn phương thức thanh toán hợp lệ"
INVALID_PAYMENT_ITEMS = "Danh sách thanh toán không hợp lệ"
INVALID_PAYMENT_ITEM = "Thông tin thanh toán không hợp lệ"
PAYMENT_REFERENCE_REQUIRED = "Thanh toán phải gắn với đặt phòng, nhóm đặt phòng hoặc phòng đặt"
PAYMENT_ROOM_MISMATCH = "Phòng đặt không thuộc đặt phòng này"
INVALID_PAGINATION = "Tham số phân trang không hợp lệ"
INVALID_REQUEST = "Dữ liệu không hợp lệ"

# Authentication
NOT_AUTHENTICATED = "Chưa xác thực"
WRONG_PASSWORD = "Sai mật khẩu"

# Not found
BOOKING_NOT_FOUND = "Không tìm thấy đặt phòng"
BOOKING_ROOM_NOT_FOUND = "Không tìm thấy phòng đặt"
BOOKING_GROUP_NOT_FOUND = "Không tìm thấy nhóm đặt phòng"
ROOM_NOT_FOUND = "Không tìm thấy phòng"
CUSTOMER_NOT_FOUND = "Không tìm thấy khách hàng"
PAYMENT_NOT_FOUND = "Không tìm thấy thông tin thanh toán"

# Conflicts
ROOM_NOT_AVAILABLE = "Phòng {room} đã được đặt trong khoảng thời gian này"
ROOM_NAME_EXISTS = "Tên phòng đã tồn tại. Vui lòng chọn tên khác"
ROOM_HAS_BOOKINGS = "Không thể xóa phòng: phòng đã có đặt phòng"
CUSTOMER_PHONE_EXISTS = "Số điện thoại đã được sử dụng"
INVALID_STATUS_TRANSITION = "Không thể chuyển trạng thái từ '{current}' sang '{target}'"

# Persistence
PERSISTENCE_ERROR = "Lỗi hệ thống, vui lòng thử lại sau"

# Success
AVAILABLE_ROOMS_FOUND = "Tìm thấy phòng trống"
BOOKING_CREATED = "Đặt phòng thành công"
BOOKINGS_LOADED = "Tải danh sách đặt phòng thành công"
BOOKING_FOUND = "Tìm thấy đặt phòng"
BOOKING_UPDATED = "Cập nhật đặt phòng thành công"
BOOKING_DELETED = "Xóa đặt phòng thành công"
BOOKING_CONFIRMED = "Xác nhận đặt phòng thành công"
BOOKING_CANCELLED = "Hủy đặt phòng thành công"
BOOKING_COMPLETED = "Hoàn tất đặt phòng thành công"
BOOKING_EXTENDED = "Gia hạn thành công"
CHECKOUT_COMPLETED = "Trả phòng và thanh toán thành công"
STATUS_SWEEP_DONE = "Đã cập nhật trạng thái {count} đặt phòng"
BOOKING_GROUP_CREATED = "Đặt nhiều phòng thành công"
BOOKING_GROUP_FOUND = "Tìm thấy nhóm đặt phòng"
BOOKING_GROUP_COMPLETED = "Thanh toán nhóm đặt phòng thành công"
BOOKING_GROUP_CANCELLED = "Hủy nhóm đặt phòng thành công"
BOOKING_ROOM_CONFIRMED = "Xác nhận phòng đặt {id} thành công"
BOOKING_ROOM_CANCELLED = "Hủy phòng đặt {id} thành công"
BOOKING_ROOM_CHECKED_IN = "Nhận phòng {id} thành công"
BOOKING_ROOM_CHECKED_OUT = "Trả phòng {id} thành công"
PAYMENT_SUCCESS = "Thanh toán thành công"
MULTIPLE_PAYMENT_SUCCESS = "Thanh toán {count} mục thành công"
UNPAID_BOOKINGS_LOADED = "Lấy danh sách booking chưa thanh toán thành công"
PAYMENT_HISTORY_LOADED = "Lấy lịch sử thanh toán thành công"
PAYMENT_DETAILS_LOADED = "Lấy chi tiết thanh toán thành công"
ROOMS_LOADED = "Tải danh sách phòng thành công"
ROOM_FOUND = "Tìm thấy phòng"
ROOM_CREATED = "Tạo phòng thành công"
ROOM_UPDATED = "Cập nhật phòng thành công"
ROOM_DELETED = "Xóa phòng thành công"
CUSTOMER_CREATED = "Tạo khách hàng thành công"
CUSTOMERS_LOADED = "Tải danh sách khách hàng thành công"
CUSTOMER_FOUND = "Tìm thấy khách hàng"
REPORT_LOADED = "Lấy báo cáo doanh thu thành công"
