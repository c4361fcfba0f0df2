"""
Клиентский скрипт типа поля для интерфейса Bitrix24.

Хуки вызывает сам CRM при отрисовке: getPublicView/getEditView/getSettings/validate
и новые имена renderView/renderEditForm. Значение поля - URL, в карточке показывается кнопкой.
"""

import json
from functools import lru_cache
from string import Template

from core.config import settings

_SCRIPT = Template("""BX.namespace('BX.BitrixCustomFields');
BX.BitrixCustomFields = {
  fieldTypeId: $field_type_id,

  /**
   * Vista pública del campo: botón que abre la URL en una nueva ventana
   * @param {string} value - URL del archivo
   * @param {Object} params - Parámetros del campo
   * @return {string} HTML
   */
  getPublicView: function(value, params) {
    if (!value || String(value).trim() === '') {
      return '<span style="color:#999">No hay archivo configurado</span>';
    }
    var settings = (params && params.SETTINGS) || {};
    var buttonText = BX.util.htmlspecialchars(settings.BUTTON_TEXT || $button_text);
    try {
      var url = new URL(value);
      if (url.protocol !== 'http:' && url.protocol !== 'https:') {
        return '<span style="color:red">URL no válida: protocolo no permitido</span>';
      }
      var safeValue = BX.util.htmlspecialchars(value);
      return '<a href="' + safeValue + '" target="_blank" rel="noopener noreferrer">' +
             '<button type="button" style="padding:6px 12px;background:#2fc6f6;color:white;border:none;border-radius:4px;cursor:pointer;">' +
             buttonText + '</button></a>';
    } catch (e) {
      return '<span style="color:red">URL no válida</span>';
    }
  },

  /**
   * Vista de edición del campo
   * @param {string} value - URL actual
   * @param {Object} params - Parámetros del campo (FIELD_NAME, SETTINGS)
   * @return {string} HTML
   */
  getEditView: function(value, params) {
    var settings = (params && params.SETTINGS) || {};
    var safeFieldName = BX.util.htmlspecialchars((params && params.FIELD_NAME) || '');
    var safeValue = BX.util.htmlspecialchars(value || '');
    var helpText = BX.util.htmlspecialchars(settings.HELP_TEXT || 'Introduce la URL completa del archivo (incluyendo https://)');
    return '<div class="archivo-electronico-edit">' +
           '<input type="text" name="' + safeFieldName + '" value="' + safeValue + '" ' +
           'style="width:100%;padding:5px;box-sizing:border-box;" placeholder="https://ejemplo.com/archivo.pdf" />' +
           '<small style="color:#777;display:block;margin-top:5px;">' + helpText + '</small>' +
           '</div>';
  },

  /**
   * Ajustes configurables del campo
   * @param {Object} settings - Ajustes actuales
   * @return {Array}
   */
  getSettings: function(settings) {
    settings = settings || {};
    return [
      {
        name: 'HELP_TEXT',
        title: 'Texto de ayuda',
        type: 'string',
        value: settings.HELP_TEXT || 'Introduce la URL del archivo electrónico'
      },
      {
        name: 'BUTTON_TEXT',
        title: 'Texto del botón',
        type: 'string',
        value: settings.BUTTON_TEXT || $button_text
      }
    ];
  },

  /**
   * Validación del valor
   * @return {boolean|Object} true si es válido, o {error, message}
   */
  validate: function(value, params) {
    if (!value || String(value).trim() === '') {
      return params && params.MANDATORY === 'Y' ?
        { error: true, message: 'Este campo es obligatorio' } : true;
    }
    try {
      var url = new URL(value);
      if (url.protocol !== 'http:' && url.protocol !== 'https:') {
        return { error: true, message: 'Solo se permiten URLs con protocolo http o https' };
      }
      return true;
    } catch (e) {
      return { error: true, message: 'La URL introducida no es válida' };
    }
  }
};
BX.BitrixCustomFields.renderView = BX.BitrixCustomFields.getPublicView;
BX.BitrixCustomFields.renderEditForm = BX.BitrixCustomFields.getEditView;
""")


@lru_cache(maxsize=1)
def render_script() -> str:
    # json.dumps даёт корректный строковый литерал JS; "</" экранируем на случай вставки в <script>
    def js_string(value: str) -> str:
        return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")

    return _SCRIPT.substitute(
        field_type_id=js_string(settings.FIELD_TYPE_ID),
        button_text=js_string(settings.FIELD_BUTTON_TEXT),
    )
